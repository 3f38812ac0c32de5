"""DTOs for the representative credential core (no dependency on the store).

Secrets (generated passwords, provider tokens) are excluded from repr so they
cannot leak through logs or tracebacks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from classconnect.domain.enums import AssignmentAction, Role
from classconnect.domain.value_objects import RepScope


@dataclass(frozen=True)
class RepIdentity:
    """Credential Store record for one identity (users/{id}).

    update_time is the store's version marker for the document, used for
    compare-and-swap writes; None when the record was not read from a store.
    """

    id: str
    email: str
    role: Role
    is_active_rep: bool
    password_version: int
    college_id: str | None = None
    department_id: str | None = None
    slot: str | None = None
    year: str | None = None
    first_name: str | None = None
    assigned_at: datetime | None = None
    assigned_by: str | None = None
    reactivated_at: datetime | None = None
    disabled_at: datetime | None = None
    disabled_reason: str | None = None
    disabled_by: str | None = None
    updated_at: datetime | None = None
    last_password_changed_at: datetime | None = None
    update_time: str | None = None

    @property
    def is_active_holder(self) -> bool:
        """True exactly when this identity is a rep currently holding a seat."""
        return self.role is Role.REP and self.is_active_rep

    @property
    def scope(self) -> RepScope | None:
        """Seat this record was last assigned to, if complete."""
        return RepScope.from_fields(
            {
                "collegeId": self.college_id,
                "departmentId": self.department_id,
                "slot": self.slot,
                "year": self.year,
            }
        )


@dataclass(frozen=True)
class RepProfile:
    """Public projection returned by a successful login. No password, no token."""

    identity_id: str
    email: str
    role: str
    is_active_rep: bool
    password_version: int
    college_id: str | None
    department_id: str | None
    slot: str | None
    year: str | None
    assigned_at: datetime | None
    last_password_changed_at: datetime | None

    @classmethod
    def from_identity(cls, identity: RepIdentity) -> RepProfile:
        return cls(
            identity_id=identity.id,
            email=identity.email,
            role=identity.role.value,
            is_active_rep=identity.is_active_rep,
            password_version=identity.password_version,
            college_id=identity.college_id,
            department_id=identity.department_id,
            slot=identity.slot,
            year=identity.year,
            assigned_at=identity.assigned_at,
            last_password_changed_at=identity.last_password_changed_at,
        )


@dataclass(frozen=True)
class RepStatus:
    """Read model for status checks by collaborators and faculty tools."""

    identity_id: str
    is_active: bool
    role: str | None
    is_active_rep: bool
    password_version: int
    disabled_at: datetime | None = None
    disabled_reason: str | None = None


@dataclass(frozen=True)
class RepStub:
    """Who to assign: an optional known provider uid plus the email to use."""

    email: str
    identity_id: str | None = None
    first_name: str | None = None


@dataclass(frozen=True)
class AssignmentRecord:
    """Append-only audit entry for an assignment, reassignment or deactivation.

    A deactivation has no new identity; email is then the disabled rep's.
    """

    action: AssignmentAction
    issuer_id: str
    new_identity_id: str | None
    email: str
    scope: RepScope
    new_password_version: int | None
    created_at: datetime
    old_identity_id: str | None = None
    old_password_version: int | None = None
    reason: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class PasswordResetRequest:
    """One-shot reset request (passwordResets/{id}). Only the token hash is stored."""

    identity_id: str
    email: str
    reset_token_hash: str
    created_at: datetime
    expires_at: datetime
    password_version_at_reset: int
    used: bool = False
    used_at: datetime | None = None
    id: str | None = None
    update_time: str | None = None

    def is_expired(self, now: datetime) -> bool:
        """True once now is past expires_at (now == expires_at is still valid)."""
        return now > self.expires_at


@dataclass(frozen=True)
class AssignResult:
    """Outcome of Assign. The password is surfaced exactly once, here."""

    identity_id: str
    password_version: int
    password: str = field(repr=False)
    reactivated: bool = False


@dataclass(frozen=True)
class ReassignResult:
    """Outcome of Reassign."""

    old_identity_id: str
    new_identity_id: str
    new_password_version: int
    password: str = field(repr=False)
    old_credential_invalidated: bool = True


@dataclass(frozen=True)
class DeactivateResult:
    """Outcome of a standalone deactivation."""

    identity_id: str
    password_version: int
    old_credential_invalidated: bool = True


@dataclass(frozen=True)
class ProviderSession:
    """Session established by a successful provider sign-in."""

    identity_id: str
    id_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class ProviderAccount:
    """Identity-provider account as seen by admin lookups."""

    uid: str
    email: str | None
    disabled: bool = False


@dataclass(frozen=True)
class StrengthResult:
    """Password strength verdict with one message per failing rule."""

    is_valid: bool
    errors: tuple[str, ...] = ()
