"""Self-service password change for a signed-in rep (never forced)."""

from __future__ import annotations

from classconnect.application.interfaces.repositories import ICredentialStore
from classconnect.application.interfaces.services import IAuthGateway
from classconnect.application.services.login_gate import check_rep_gates
from classconnect.application.services.password_policy import validate_strength
from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.domain.exceptions import (
    InvalidRoleException,
    MissingFieldException,
    NotActiveRepException,
    SamePasswordException,
    UserNotFoundException,
    WeakPasswordException,
)
from classconnect.shared.telemetry.logging import get_logger
from classconnect.shared.telemetry.tracing import traced

logger = get_logger(__name__)


class PasswordChangeService:
    def __init__(
        self,
        store: ICredentialStore,
        gateway: IAuthGateway,
        lifecycle: RepLifecycleManager,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._lifecycle = lifecycle

    @traced("password_change.change")
    async def change(
        self, identity_id: str, current_password: str | None, new_password: str | None
    ) -> int:
        """Change the caller's password; return the new password version.

        Active status is re-read here: a session must not outlive the seat.

        Raises:
            MissingFieldException, SamePasswordException, WeakPasswordException,
            NotActiveRepException, InvalidRoleException, AuthError.
        """
        if not current_password:
            raise MissingFieldException("currentPassword")
        if not new_password:
            raise MissingFieldException("newPassword")
        if new_password == current_password:
            raise SamePasswordException()
        strength = validate_strength(new_password)
        if not strength.is_valid:
            raise WeakPasswordException(list(strength.errors))

        record = await self._store.get(identity_id)
        if record is None:
            raise UserNotFoundException()
        try:
            check_rep_gates(record)
        except (InvalidRoleException, NotActiveRepException):
            await self._gateway.sign_out(identity_id)
            raise

        # Re-verify the current password; the resulting session is not kept.
        await self._gateway.sign_in(record.email, current_password)
        await self._gateway.update_password(identity_id, new_password)
        version = await self._lifecycle.record_credential_change(identity_id)
        logger.info("Password changed for identity %s (version %d)", identity_id, version)
        return version
