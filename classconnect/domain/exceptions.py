"""Domain exceptions for ClassConnect.

Defines domain-level exceptions that represent business rule violations and
the normalized failure taxonomy of the credential core. These exceptions are
independent of infrastructure concerns. Presentation layer maps them to HTTP
responses in exception handlers.
"""

from typing import Any

# Shared opaque message for every reset-link failure (token unknown, used,
# expired, stale, or owner no longer an active rep).
RESET_LINK_INVALID_MESSAGE = "Invalid or expired reset link"


class ClassConnectException(Exception):
    """Base exception for all ClassConnect application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, itemized errors).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Response body for this error (never includes internal causes)."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(ClassConnectException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class MissingFieldException(ClassConnectException):
    """Raised before any I/O when a required input is absent or blank."""

    def __init__(self, field: str) -> None:
        """Initialize with the missing field's generic name.

        Args:
            field: Field name shown to the caller (e.g. 'email', 'password').
        """
        super().__init__(f"{field} is required", "MISSING_FIELD", {"field": field})


class AuthError(ClassConnectException):
    """Raised when the identity provider rejects credentials.

    The message never distinguishes an unknown email from a wrong password.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message, "AUTH_ERROR")


class UserNotFoundException(ClassConnectException):
    """Provider identity exists but there is no credential record for it."""

    def __init__(self) -> None:
        super().__init__(
            "User registration not found. Contact your faculty advisor.",
            "USER_NOT_FOUND",
        )


class InvalidRoleException(ClassConnectException):
    """Record exists but its role is not rep. The actual role is withheld."""

    def __init__(self) -> None:
        super().__init__(
            "You are not registered as a Class Representative. "
            "Contact your faculty advisor.",
            "INVALID_ROLE",
        )


class NotActiveRepException(ClassConnectException):
    """Rep role is correct but the identity is not the active seat holder."""

    def __init__(self, replaced: bool = False) -> None:
        """Initialize with whether the rep was superseded.

        Args:
            replaced: True when the record carries disabledAt (rep was replaced),
                False when the identity was never (or is no longer) assigned.
        """
        message = "You are not an active Class Representative."
        if replaced:
            message += " You were replaced as Class Representative."
        message += " Contact your faculty advisor for assistance."
        super().__init__(message, "NOT_ACTIVE_REP", {"replaced": replaced})


class ResetLinkException(ClassConnectException):
    """Base for reset-link failures.

    error_code keeps the specific kind for logs and spans; the response body
    always carries the same public code and message.
    """

    public_code = "INVALID_OR_EXPIRED_TOKEN"

    def __init__(self, error_code: str) -> None:
        super().__init__(RESET_LINK_INVALID_MESSAGE, error_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.public_code,
            "message": RESET_LINK_INVALID_MESSAGE,
        }


class InvalidOrExpiredTokenException(ResetLinkException):
    """No unused reset request matches the identity and token."""

    def __init__(self) -> None:
        super().__init__("INVALID_OR_EXPIRED_TOKEN")


class ResetTokenExpiredException(ResetLinkException):
    """Reset request matched but its expiry has passed (request is not consumed)."""

    def __init__(self) -> None:
        super().__init__("TOKEN_EXPIRED")


class StaleResetRequestException(ResetLinkException):
    """Password version advanced since the reset request was issued."""

    def __init__(self) -> None:
        super().__init__("STALE_REQUEST")


class NoLongerActiveRepException(ResetLinkException):
    """Owner of a reset request stopped being an active rep before completion."""

    def __init__(self) -> None:
        super().__init__("NO_LONGER_ACTIVE_REP")


class WeakPasswordException(ClassConnectException):
    """New password fails the strength policy; every unmet rule is listed."""

    def __init__(self, errors: list[str]) -> None:
        """Initialize with the itemized rule failures.

        Args:
            errors: One message per failing rule.
        """
        super().__init__(
            "Password does not meet requirements",
            "WEAK_PASSWORD",
            {"errors": list(errors)},
        )
        self.errors = list(errors)


class SamePasswordException(ClassConnectException):
    """New password equals the current one."""

    def __init__(self) -> None:
        super().__init__(
            "New password must be different from current password",
            "SAME_PASSWORD",
        )


class DuplicateEmailException(ClassConnectException):
    """Provider refused to create an identity because the email is taken."""

    def __init__(self) -> None:
        super().__init__("Email is already registered", "DUPLICATE_EMAIL")


class SlotOccupiedException(ClassConnectException):
    """Assign targeted a seat already held by a different active rep."""

    def __init__(self, scope_key: str) -> None:
        super().__init__(
            "This Class Representative slot is already assigned; use reassignment",
            "SLOT_OCCUPIED",
            {"scope": scope_key},
        )


class RepNotActiveException(ClassConnectException):
    """Reassign was asked to supersede an identity that is not an active rep."""

    def __init__(self, identity_id: str) -> None:
        super().__init__(
            "The representative being replaced is not an active Class Representative",
            "REP_NOT_ACTIVE",
            {"identity_id": identity_id},
        )


class ConcurrentModificationException(ClassConnectException):
    """A conditional credential write lost a race with another request."""

    def __init__(self, identity_id: str) -> None:
        super().__init__(
            "Representative record was modified by another request; retry.",
            "CONCURRENT_MODIFICATION",
            {"identity_id": identity_id},
        )


class AuthenticationException(ClassConnectException):
    """Raised when bearer authentication fails (missing, invalid or revoked token)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(ClassConnectException):
    """Raised when the caller lacks the role required for the operation."""

    def __init__(
        self,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional action and message.

        Args:
            action: Optional action that was attempted (e.g. 'assign_rep').
            message: Human-readable message.
        """
        details: dict[str, Any] = {}
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(ClassConnectException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ProviderError(ClassConnectException):
    """Unclassified identity-provider or document-store failure.

    The provider's own code is kept on the instance for server-side logs and
    is never part of the response body.
    """

    def __init__(
        self,
        message: str = "Authentication service is unavailable. Please try again.",
        provider_code: str | None = None,
    ) -> None:
        super().__init__(message, "PROVIDER_ERROR")
        self.provider_code = provider_code


class ServiceNotConfiguredException(ClassConnectException):
    """Raised when Firebase credentials are not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="Firebase is not configured (set FIREBASE_SERVICE_ACCOUNT_KEY or PATH)",
            error_code="SERVICE_UNAVAILABLE",
        )
