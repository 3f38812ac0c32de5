"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from classconnect.application.dtos.representative import (
        ProviderAccount,
        ProviderSession,
    )


class IAuthGateway(Protocol):
    """Uniform capability set over the external identity provider.

    Implementations own no state and normalize every provider error into the
    domain taxonomy (AuthError, DuplicateEmailException, WeakPasswordException,
    ProviderError).
    """

    async def sign_in(self, email: str, password: str) -> ProviderSession:
        """Authenticate with email/password; raise AuthError on rejection."""

    async def create_identity(self, email: str, password: str) -> str:
        """Create a provider account; return its uid."""

    async def get_identity(self, identity_id: str) -> ProviderAccount | None:
        """Return the provider account for uid, or None."""

    async def find_identity_by_email(self, email: str) -> ProviderAccount | None:
        """Return the provider account registered with email, or None."""

    async def update_password(
        self, identity_id: str, new_password: str, email: str | None = None
    ) -> None:
        """Set a new password (and optionally email) with service credentials."""

    async def sign_out(self, identity_id: str) -> None:
        """Revoke the identity's sessions. Idempotent and best-effort: never raises."""

    async def verify_id_token(self, id_token: str) -> str:
        """Return the uid for a valid, unrevoked ID token; raise AuthenticationException otherwise."""


class IResetNotifier(Protocol):
    """Delivers a freshly issued reset token to the account owner."""

    async def send_reset_token(
        self,
        email: str,
        identity_id: str,
        token: str,
        expires_at: datetime,
    ) -> None:
        """Deliver the token out of band. Implementations must not log the token."""
