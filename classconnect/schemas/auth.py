"""Auth API schemas (rep login, password reset, password change).

Credential fields are optional at the schema level: blank and missing values
are rejected by the services with a generic "<field> is required" so that
no provider call is made.
"""

from datetime import datetime

from pydantic import Field

from classconnect.application.dtos.representative import RepProfile
from classconnect.schemas.base import CamelModel


class RepLoginRequest(CamelModel):
    """Request body for POST /auth/rep/login."""

    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=256)


class RepProfileResponse(CamelModel):
    """Public projection of a rep record (no password, no token)."""

    uid: str
    email: str
    role: str
    is_active_rep: bool
    password_version: int
    college_id: str | None = None
    department_id: str | None = None
    slot: str | None = None
    year: str | None = None
    assigned_at: datetime | None = None
    last_password_changed_at: datetime | None = None

    @classmethod
    def from_profile(cls, profile: RepProfile) -> "RepProfileResponse":
        return cls(
            uid=profile.identity_id,
            email=profile.email,
            role=profile.role,
            is_active_rep=profile.is_active_rep,
            password_version=profile.password_version,
            college_id=profile.college_id,
            department_id=profile.department_id,
            slot=profile.slot,
            year=profile.year,
            assigned_at=profile.assigned_at,
            last_password_changed_at=profile.last_password_changed_at,
        )


class RepLoginResponse(CamelModel):
    """Response for a granted rep login."""

    success: bool = True
    uid: str
    user: RepProfileResponse
    message: str = "Login successful"


class PasswordResetRequestBody(CamelModel):
    """Request body for POST /auth/requestPasswordReset."""

    email: str | None = Field(default=None, max_length=320)


class VerifyResetTokenRequest(CamelModel):
    """Request body for POST /auth/verifyResetToken."""

    token: str | None = Field(default=None, max_length=512)
    email: str | None = Field(default=None, max_length=320)


class CompletePasswordResetRequest(CamelModel):
    """Request body for POST /auth/completePasswordReset."""

    email: str | None = Field(default=None, max_length=320)
    reset_token: str | None = Field(default=None, max_length=512)
    new_password: str | None = Field(default=None, max_length=256)


class ChangePasswordRequest(CamelModel):
    """Request body for POST /auth/changePassword."""

    current_password: str | None = Field(default=None, max_length=256)
    new_password: str | None = Field(default=None, max_length=256)


class ChangePasswordResponse(CamelModel):
    success: bool = True
    message: str = "Password changed successfully"
    password_version: int
