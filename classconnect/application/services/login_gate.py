"""Login Gate: password sign-in admitted only for the active rep of a seat.

Gates run in a fixed order (provider sign-in, record, role, active status)
and every denial after the provider accepted the password revokes the
session it just created.
"""

from __future__ import annotations

from classconnect.application.dtos.representative import RepIdentity, RepProfile
from classconnect.application.interfaces.repositories import ICredentialStore
from classconnect.application.interfaces.services import IAuthGateway
from classconnect.domain.enums import Role
from classconnect.domain.exceptions import (
    InvalidRoleException,
    MissingFieldException,
    NotActiveRepException,
    UserNotFoundException,
)
from classconnect.domain.value_objects import normalize_email
from classconnect.shared.telemetry.logging import get_logger
from classconnect.shared.telemetry.tracing import add_span_event, traced

logger = get_logger(__name__)


def check_rep_gates(record: RepIdentity) -> None:
    """Raise unless the record is a rep that currently holds a seat."""
    match record.role:
        case Role.REP:
            pass
        case Role.FACULTY | Role.OTHER:
            raise InvalidRoleException()
    if not record.is_active_rep:
        raise NotActiveRepException(replaced=record.disabled_at is not None)


class LoginGate:
    """Authenticates representatives."""

    def __init__(self, store: ICredentialStore, gateway: IAuthGateway) -> None:
        self._store = store
        self._gateway = gateway

    @traced("login_gate.login")
    async def login(self, email: str | None, password: str | None) -> RepProfile:
        """Sign a rep in and return their public profile.

        Raises:
            MissingFieldException: Blank email or password (no provider call).
            AuthError: Provider rejected the credentials.
            UserNotFoundException: No credential record for the identity.
            InvalidRoleException: Record role is not rep.
            NotActiveRepException: Rep is not the active holder.
        """
        normalized = normalize_email(email)
        if not normalized:
            raise MissingFieldException("email")
        if not password:
            raise MissingFieldException("password")

        session = await self._gateway.sign_in(normalized, password)
        identity_id = session.identity_id
        try:
            record = await self._store.get(identity_id)
            if record is None:
                raise UserNotFoundException()
            check_rep_gates(record)
        except BaseException as e:
            add_span_event(
                "login_gate.denied", {"error.code": getattr(e, "error_code", type(e).__name__)}
            )
            logger.info(
                "Rep login denied for identity %s: %s",
                identity_id,
                getattr(e, "error_code", type(e).__name__),
            )
            await self._gateway.sign_out(identity_id)
            raise

        logger.info("Rep login granted: identity=%s", identity_id)
        return RepProfile.from_identity(record)

    async def logout(self, identity_id: str) -> None:
        """Revoke the rep's provider sessions (idempotent)."""
        await self._gateway.sign_out(identity_id)
        logger.info("Rep logged out: identity=%s", identity_id)
