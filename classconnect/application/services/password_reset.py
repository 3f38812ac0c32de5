"""Password Reset Flow: request, verify and complete a one-shot reset.

The request step answers identically whether or not the email belongs to an
active rep. A reset request carries the password version it was issued
against, so any credential change in between makes it stale.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from classconnect.application.dtos.representative import PasswordResetRequest
from classconnect.application.interfaces.repositories import (
    ICredentialStore,
    IPasswordResetStore,
)
from classconnect.application.interfaces.services import IAuthGateway, IResetNotifier
from classconnect.application.services.hash_service import TokenHashService
from classconnect.application.services.password_policy import validate_strength
from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.domain.exceptions import (
    ClassConnectException,
    InvalidOrExpiredTokenException,
    MissingFieldException,
    NoLongerActiveRepException,
    ResetTokenExpiredException,
    StaleResetRequestException,
    WeakPasswordException,
)
from classconnect.domain.value_objects import normalize_email
from classconnect.shared.telemetry.logging import get_logger
from classconnect.shared.telemetry.tracing import traced
from classconnect.shared.utils.datetime import utc_now
from classconnect.shared.utils.generators import generate_reset_token

logger = get_logger(__name__)

RESET_ACK_MESSAGE = "If an account exists, a reset link has been sent to the email"
RATE_LIMIT_WINDOW = timedelta(days=1)


class PasswordResetFlow:
    """Issues and redeems password reset tokens for active reps."""

    def __init__(
        self,
        store: ICredentialStore,
        resets: IPasswordResetStore,
        gateway: IAuthGateway,
        lifecycle: RepLifecycleManager,
        notifier: IResetNotifier,
        *,
        token_ttl_seconds: int = 3600,
        max_requests_per_day: int = 3,
        token_min_length: int = 32,
        clock: Callable[[], datetime] = utc_now,
        hasher: TokenHashService | None = None,
    ) -> None:
        self._store = store
        self._resets = resets
        self._gateway = gateway
        self._lifecycle = lifecycle
        self._notifier = notifier
        self._ttl = timedelta(seconds=token_ttl_seconds)
        self._max_per_day = max_requests_per_day
        self._token_min_length = token_min_length
        self._clock = clock
        self._hasher = hasher or TokenHashService()

    @traced("password_reset.request")
    async def request(self, email: str | None) -> str:
        """Issue a reset token if email belongs to an active rep.

        Returns:
            The generic acknowledgement, on every branch.

        Raises:
            MissingFieldException: Blank email.
        """
        normalized = normalize_email(email)
        if not normalized:
            raise MissingFieldException("email")

        record = await self._store.get_active_rep_by_email(normalized)
        if record is None:
            logger.info("Password reset not issued (no active rep for email)")
            return RESET_ACK_MESSAGE

        now = self._clock()
        recent = await self._resets.count_created_since(record.id, now - RATE_LIMIT_WINDOW)
        if recent >= self._max_per_day:
            logger.warning("Password reset rate limit reached for identity %s", record.id)
            return RESET_ACK_MESSAGE

        token = generate_reset_token()
        expires_at = now + self._ttl
        await self._resets.create(
            PasswordResetRequest(
                identity_id=record.id,
                email=normalized,
                reset_token_hash=self._hasher.hash_token(token),
                created_at=now,
                expires_at=expires_at,
                password_version_at_reset=record.password_version,
            )
        )
        await self._notifier.send_reset_token(normalized, record.id, token, expires_at)
        logger.info("Password reset issued for identity %s", record.id)
        return RESET_ACK_MESSAGE

    def verify_token(self, token: str | None, email: str | None) -> None:
        """Format guard for a reset link; the store is not consulted.

        Raises:
            InvalidOrExpiredTokenException: Token too short or email blank.
        """
        if not token or len(token) < self._token_min_length or not normalize_email(email):
            raise InvalidOrExpiredTokenException()

    async def complete_for_email(
        self, email: str | None, token: str | None, new_password: str | None
    ) -> None:
        """Resolve the identity by email, then complete the reset."""
        normalized = normalize_email(email)
        if not normalized:
            raise MissingFieldException("email")
        if not token:
            raise MissingFieldException("resetToken")
        if not new_password:
            raise MissingFieldException("newPassword")
        # A rep replaced after requesting still resolves, and is refused as inactive.
        record = await self._store.get_active_rep_by_email(normalized)
        if record is None:
            record = await self._store.get_by_email(normalized)
        if record is None:
            raise InvalidOrExpiredTokenException()
        await self.complete(record.id, token, new_password)

    @traced("password_reset.complete")
    async def complete(self, identity_id: str, token: str, new_password: str) -> None:
        """Redeem a reset token and set the new password.

        Raises:
            InvalidOrExpiredTokenException: No unused request matches, or it was consumed concurrently.
            ResetTokenExpiredException: Request matched but has expired (left unconsumed).
            NoLongerActiveRepException: Owner is no longer an active rep.
            StaleResetRequestException: Password changed since the request was issued.
            WeakPasswordException: New password fails the policy.
        """
        request = await self._resets.find_unused(identity_id, self._hasher.hash_token(token))
        if request is None or not self._hasher.matches(token, request.reset_token_hash):
            raise InvalidOrExpiredTokenException()

        now = self._clock()
        if request.is_expired(now):
            raise ResetTokenExpiredException()

        record = await self._store.get(identity_id)
        if record is None or not record.is_active_holder:
            raise NoLongerActiveRepException()
        if record.password_version != request.password_version_at_reset:
            raise StaleResetRequestException()

        strength = validate_strength(new_password)
        if not strength.is_valid:
            raise WeakPasswordException(list(strength.errors))

        # Consume first: of two concurrent redemptions only one may set a password.
        if not await self._resets.mark_used(request, now):
            raise InvalidOrExpiredTokenException()
        try:
            await self._gateway.update_password(identity_id, new_password)
        except ClassConnectException as e:
            logger.error(
                "Reset request %s consumed but the provider update failed for %s: %s",
                request.id,
                identity_id,
                e.error_code,
            )
            raise
        await self._lifecycle.record_credential_change(identity_id)
        await self._gateway.sign_out(identity_id)
        logger.info("Password reset completed for identity %s", identity_id)
