"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for repositories, the identity gateway and the
application services. Everything is built from the Firebase clients the
lifespan stored on app.state; routes depend only on these dependencies, not
on infrastructure directly. Tests override the repository and gateway
providers with in-memory doubles.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from classconnect.application.interfaces.repositories import (
    IAssignmentLog,
    ICredentialStore,
    IPasswordResetStore,
)
from classconnect.application.interfaces.services import IAuthGateway, IResetNotifier
from classconnect.application.services.login_gate import LoginGate
from classconnect.application.services.password_change import PasswordChangeService
from classconnect.application.services.password_reset import PasswordResetFlow
from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.core.config import Settings, get_settings
from classconnect.domain.enums import Role
from classconnect.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ServiceNotConfiguredException,
)
from classconnect.infrastructure.firebase._rest_client import FirestoreRESTClient
from classconnect.infrastructure.firebase.repositories import (
    FirestoreAssignmentLog,
    FirestoreCredentialStore,
    FirestorePasswordResetStore,
)
from classconnect.infrastructure.services.reset_notifier import LogOnlyResetNotifier

_http_bearer = HTTPBearer(auto_error=False)


def _get_firestore_or_raise(request: Request) -> FirestoreRESTClient:
    """Return the Firestore client or raise 503 (service not configured)."""
    client = getattr(request.app.state, "firestore", None)
    if client is None:
        raise ServiceNotConfiguredException()
    return client


def get_gateway(request: Request) -> IAuthGateway:
    """Identity-provider gateway; 503 when Firebase is not configured."""
    gateway = getattr(request.app.state, "auth_gateway", None)
    if gateway is None:
        raise ServiceNotConfiguredException()
    return gateway


def get_credential_store(
    firestore: Annotated[FirestoreRESTClient, Depends(_get_firestore_or_raise)],
) -> ICredentialStore:
    return FirestoreCredentialStore(firestore)


def get_assignment_log(
    firestore: Annotated[FirestoreRESTClient, Depends(_get_firestore_or_raise)],
) -> IAssignmentLog:
    return FirestoreAssignmentLog(firestore)


def get_password_reset_store(
    firestore: Annotated[FirestoreRESTClient, Depends(_get_firestore_or_raise)],
) -> IPasswordResetStore:
    return FirestorePasswordResetStore(firestore)


def get_reset_notifier() -> IResetNotifier:
    return LogOnlyResetNotifier()


def get_lifecycle_manager(
    store: Annotated[ICredentialStore, Depends(get_credential_store)],
    assignments: Annotated[IAssignmentLog, Depends(get_assignment_log)],
    gateway: Annotated[IAuthGateway, Depends(get_gateway)],
) -> RepLifecycleManager:
    return RepLifecycleManager(store, assignments, gateway)


def get_login_gate(
    store: Annotated[ICredentialStore, Depends(get_credential_store)],
    gateway: Annotated[IAuthGateway, Depends(get_gateway)],
) -> LoginGate:
    return LoginGate(store, gateway)


def get_password_reset_flow(
    store: Annotated[ICredentialStore, Depends(get_credential_store)],
    resets: Annotated[IPasswordResetStore, Depends(get_password_reset_store)],
    gateway: Annotated[IAuthGateway, Depends(get_gateway)],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
    notifier: Annotated[IResetNotifier, Depends(get_reset_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PasswordResetFlow:
    return PasswordResetFlow(
        store,
        resets,
        gateway,
        lifecycle,
        notifier,
        token_ttl_seconds=settings.reset_token_ttl_seconds,
        max_requests_per_day=settings.reset_max_requests_per_day,
        token_min_length=settings.reset_token_min_length,
    )


def get_password_change_service(
    store: Annotated[ICredentialStore, Depends(get_credential_store)],
    gateway: Annotated[IAuthGateway, Depends(get_gateway)],
    lifecycle: Annotated[RepLifecycleManager, Depends(get_lifecycle_manager)],
) -> PasswordChangeService:
    return PasswordChangeService(store, gateway, lifecycle)


async def get_current_identity_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    gateway: Annotated[IAuthGateway, Depends(get_gateway)],
) -> str:
    """Return the uid behind the bearer ID token; 401 if missing, invalid or revoked."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Not authenticated")
    return await gateway.verify_id_token(credentials.credentials)


def require_faculty(action: str):
    """Dependency factory: require a bearer token whose record has role faculty."""

    async def _require(
        identity_id: Annotated[str, Depends(get_current_identity_id)],
        store: Annotated[ICredentialStore, Depends(get_credential_store)],
    ) -> str:
        record = await store.get(identity_id)
        if record is None or record.role is not Role.FACULTY:
            raise AuthorizationException(
                action=action, message="Only faculty can perform this action"
            )
        return identity_id

    return _require
