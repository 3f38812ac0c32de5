"""Application DTOs (read models and command results)."""

from classconnect.application.dtos.representative import (
    AssignmentRecord,
    AssignResult,
    DeactivateResult,
    PasswordResetRequest,
    ProviderAccount,
    ProviderSession,
    ReassignResult,
    RepIdentity,
    RepProfile,
    RepStatus,
    RepStub,
    StrengthResult,
)

__all__ = [
    "AssignmentRecord",
    "AssignResult",
    "DeactivateResult",
    "PasswordResetRequest",
    "ProviderAccount",
    "ProviderSession",
    "ReassignResult",
    "RepIdentity",
    "RepProfile",
    "RepStatus",
    "RepStub",
    "StrengthResult",
]
