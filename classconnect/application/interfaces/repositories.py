"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.

Conditional writes take the store version marker (update_time) observed on
the last read and return False when the document changed since; None means
"the document must not exist yet".
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from classconnect.application.dtos.representative import (
        AssignmentRecord,
        PasswordResetRequest,
        RepIdentity,
    )
    from classconnect.domain.value_objects import RepScope


class ICredentialStore(Protocol):
    """Protocol for the users collection (Credential Store)."""

    async def get(self, identity_id: str) -> RepIdentity | None:
        """Return the record for identity_id, or None."""

    async def get_by_email(self, email: str) -> RepIdentity | None:
        """Return any record with this normalized email (active or not), or None."""

    async def get_active_rep_by_email(self, email: str) -> RepIdentity | None:
        """Return the active rep with this normalized email, or None.

        Email is unique only among active reps; disabled records may share it.
        """

    async def find_active_by_scope(self, scope: RepScope) -> list[RepIdentity]:
        """Return rep records with isActiveRep == true for the seat."""

    async def list_active(
        self,
        college_id: str | None = None,
        department_id: str | None = None,
        year: str | None = None,
        limit: int = 100,
    ) -> list[RepIdentity]:
        """Return rep records with isActiveRep == true (optionally filtered)."""

    async def list_inactive(
        self,
        college_id: str | None = None,
        department_id: str | None = None,
        limit: int = 100,
    ) -> list[RepIdentity]:
        """Return rep records with isActiveRep == false (optionally filtered)."""

    async def activate(
        self,
        identity_id: str,
        *,
        email: str,
        scope: RepScope,
        password_version: int,
        issuer_id: str,
        now: datetime,
        expected_update_time: str | None,
        reactivated: bool = False,
    ) -> bool:
        """Mark identity as the active rep for scope with the given password version."""

    async def disable(
        self,
        identity_id: str,
        *,
        reason: str,
        password_version: int,
        issuer_id: str,
        now: datetime,
        expected_update_time: str | None,
    ) -> bool:
        """Set isActiveRep false, store the bumped password version and record disabledAt/disabledReason/disabledBy."""

    async def record_password_change(
        self,
        identity_id: str,
        *,
        password_version: int,
        now: datetime,
        expected_update_time: str | None,
    ) -> bool:
        """Store the new password version and lastPasswordChangedAt."""


class IAssignmentLog(Protocol):
    """Protocol for the append-only repAssignments collection."""

    async def append(self, record: AssignmentRecord) -> str:
        """Persist a new record; return its id. Records are never updated."""


class IPasswordResetStore(Protocol):
    """Protocol for the passwordResets collection."""

    async def create(self, request: PasswordResetRequest) -> str:
        """Persist a new reset request; return its id."""

    async def find_unused(
        self, identity_id: str, reset_token_hash: str
    ) -> PasswordResetRequest | None:
        """Return the unused request matching identity and token hash, or None."""

    async def mark_used(self, request: PasswordResetRequest, now: datetime) -> bool:
        """Consume the request (used=true, usedAt); False if it changed since it was read."""

    async def count_created_since(self, identity_id: str, since: datetime) -> int:
        """Return how many requests were created for identity_id at or after since."""
