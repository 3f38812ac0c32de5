"""Faculty-facing representative management schemas."""

from datetime import datetime

from pydantic import Field

from classconnect.application.dtos.representative import RepIdentity, RepStatus
from classconnect.schemas.base import CamelModel


class _ScopeFields(CamelModel):
    college_id: str | None = Field(default=None, max_length=128)
    department_id: str | None = Field(default=None, max_length=128)
    slot: str | None = Field(default=None, max_length=64)
    year: str | int | None = None


class AssignRepRequest(_ScopeFields):
    """Request body for POST /reps/assignClassRepresentative."""

    student_uid: str | None = Field(default=None, max_length=128)
    student_email: str | None = Field(default=None, max_length=320)
    student_first_name: str | None = Field(default=None, max_length=128)


class ReassignRepRequest(_ScopeFields):
    """Request body for POST /reps/reassignClassRepresentative."""

    old_rep_uid: str | None = Field(default=None, max_length=128)
    new_student_uid: str | None = Field(default=None, max_length=128)
    new_student_email: str | None = Field(default=None, max_length=320)
    new_student_first_name: str | None = Field(default=None, max_length=128)


class AssignRepResponse(CamelModel):
    """The generated password appears here once and is never stored in plain text."""

    success: bool = True
    message: str = "Class Representative assigned successfully"
    uid: str
    password: str
    password_version: int
    reactivated: bool = False


class ReassignRepResponse(CamelModel):
    success: bool = True
    message: str = "Class Representative reassigned successfully"
    old_rep_uid: str
    new_rep_uid: str
    password: str
    new_password_version: int
    old_credential_invalidated: bool


class RepStatusResponse(CamelModel):
    success: bool = True
    uid: str
    is_active: bool
    role: str | None
    is_active_rep: bool
    password_version: int
    disabled_at: datetime | None = None
    disabled_reason: str | None = None

    @classmethod
    def from_status(cls, status: RepStatus) -> "RepStatusResponse":
        return cls(
            uid=status.identity_id,
            is_active=status.is_active,
            role=status.role,
            is_active_rep=status.is_active_rep,
            password_version=status.password_version,
            disabled_at=status.disabled_at,
            disabled_reason=status.disabled_reason,
        )


class InactiveRepItem(CamelModel):
    uid: str
    email: str
    college_id: str | None = None
    department_id: str | None = None
    slot: str | None = None
    year: str | None = None
    disabled_at: datetime | None = None
    disabled_reason: str | None = None

    @classmethod
    def from_identity(cls, identity: RepIdentity) -> "InactiveRepItem":
        return cls(
            uid=identity.id,
            email=identity.email,
            college_id=identity.college_id,
            department_id=identity.department_id,
            slot=identity.slot,
            year=identity.year,
            disabled_at=identity.disabled_at,
            disabled_reason=identity.disabled_reason,
        )


class InactiveRepsResponse(CamelModel):
    success: bool = True
    reps: list[InactiveRepItem]
    count: int


class DeactivateRepRequest(CamelModel):
    """Request body for POST /reps/deactivateClassRepresentative."""

    uid: str | None = Field(default=None, max_length=128)
    reason: str | None = Field(default=None, max_length=500)


class DeactivateRepResponse(CamelModel):
    success: bool = True
    message: str = "Class Representative deactivated successfully"
    uid: str
    password_version: int
    old_credential_invalidated: bool


class ActiveRepItem(CamelModel):
    uid: str
    email: str
    first_name: str | None = None
    college_id: str | None = None
    department_id: str | None = None
    slot: str | None = None
    year: str | None = None
    password_version: int

    @classmethod
    def from_identity(cls, identity: RepIdentity) -> "ActiveRepItem":
        return cls(
            uid=identity.id,
            email=identity.email,
            first_name=identity.first_name,
            college_id=identity.college_id,
            department_id=identity.department_id,
            slot=identity.slot,
            year=identity.year,
            password_version=identity.password_version,
        )


class ActiveRepsResponse(CamelModel):
    success: bool = True
    reps: list[ActiveRepItem]
    count: int
