"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from classconnect.domain.enums import AssignmentAction, Role
from classconnect.domain.exceptions import (
    AuthError,
    ClassConnectException,
    InvalidOrExpiredTokenException,
    InvalidRoleException,
    MissingFieldException,
    NotActiveRepException,
    ProviderError,
    UserNotFoundException,
    WeakPasswordException,
)
from classconnect.domain.value_objects import RepScope, normalize_email

__all__ = [
    # Enums
    "AssignmentAction",
    "Role",
    # Exceptions
    "AuthError",
    "ClassConnectException",
    "InvalidOrExpiredTokenException",
    "InvalidRoleException",
    "MissingFieldException",
    "NotActiveRepException",
    "ProviderError",
    "UserNotFoundException",
    "WeakPasswordException",
    # Value objects
    "RepScope",
    "normalize_email",
]
