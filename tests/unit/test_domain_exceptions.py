"""Tests for domain exceptions (error_code, message, details, response body)."""

from classconnect.domain.exceptions import (
    RESET_LINK_INVALID_MESSAGE,
    AuthenticationException,
    AuthError,
    AuthorizationException,
    ClassConnectException,
    ConcurrentModificationException,
    InvalidOrExpiredTokenException,
    InvalidRoleException,
    MissingFieldException,
    NoLongerActiveRepException,
    NotActiveRepException,
    ProviderError,
    ResetTokenExpiredException,
    ResourceNotFoundException,
    SlotOccupiedException,
    StaleResetRequestException,
    ValidationException,
    WeakPasswordException,
)


def test_base_exception_default_error_code() -> None:
    """Base exception uses class name as error_code when not provided."""
    exc = ClassConnectException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "ClassConnectException"
    assert exc.details == {}


def test_to_dict_has_failure_shape() -> None:
    body = MissingFieldException("email").to_dict()
    assert body == {
        "success": False,
        "error": "MISSING_FIELD",
        "message": "email is required",
        "details": {"field": "email"},
    }


def test_to_dict_omits_empty_details() -> None:
    assert "details" not in AuthError().to_dict()


def test_validation_exception() -> None:
    exc = ValidationException("Invalid format", field="email")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "email"}


def test_auth_error_is_generic() -> None:
    """Unknown email and wrong password share one message."""
    exc = AuthError()
    assert exc.error_code == "AUTH_ERROR"
    assert exc.message == "Invalid email or password"


def test_invalid_role_message_is_fixed() -> None:
    """The stored role is never passed in, so it cannot appear in the body."""
    exc = InvalidRoleException()
    assert exc.error_code == "INVALID_ROLE"
    assert exc.message == (
        "You are not registered as a Class Representative. Contact your faculty advisor."
    )
    assert exc.details == {}


def test_not_active_rep_mentions_replacement_only_when_replaced() -> None:
    plain = NotActiveRepException()
    replaced = NotActiveRepException(replaced=True)
    assert plain.error_code == replaced.error_code == "NOT_ACTIVE_REP"
    assert "replaced" not in plain.message
    assert "replaced" in replaced.message
    assert replaced.details == {"replaced": True}


def test_reset_failures_share_one_message() -> None:
    """Every reset-link failure renders the same body; error_code keeps the kind for logs."""
    excs = [
        InvalidOrExpiredTokenException(),
        ResetTokenExpiredException(),
        StaleResetRequestException(),
        NoLongerActiveRepException(),
    ]
    assert {e.message for e in excs} == {RESET_LINK_INVALID_MESSAGE}
    assert [e.error_code for e in excs] == [
        "INVALID_OR_EXPIRED_TOKEN",
        "TOKEN_EXPIRED",
        "STALE_REQUEST",
        "NO_LONGER_ACTIVE_REP",
    ]
    assert all(e.to_dict() == excs[0].to_dict() for e in excs)
    assert excs[0].to_dict() == {
        "success": False,
        "error": "INVALID_OR_EXPIRED_TOKEN",
        "message": RESET_LINK_INVALID_MESSAGE,
    }


def test_weak_password_lists_errors() -> None:
    exc = WeakPasswordException(["too short", "needs a number"])
    assert exc.error_code == "WEAK_PASSWORD"
    assert exc.errors == ["too short", "needs a number"]
    assert exc.details == {"errors": ["too short", "needs a number"]}


def test_slot_occupied_and_concurrent_modification_details() -> None:
    assert SlotOccupiedException("c/d/A/2").details == {"scope": "c/d/A/2"}
    assert ConcurrentModificationException("u1").details == {"identity_id": "u1"}


def test_provider_error_keeps_code_out_of_body() -> None:
    exc = ProviderError(provider_code="auth/internal-error")
    assert exc.provider_code == "auth/internal-error"
    assert "auth/internal-error" not in str(exc.to_dict())


def test_authentication_and_authorization() -> None:
    assert AuthenticationException().error_code == "AUTHENTICATION_ERROR"
    exc = AuthorizationException(action="assign_rep")
    assert exc.error_code == "PERMISSION_DENIED"
    assert exc.details == {"action": "assign_rep"}


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("Representative", "u9")
    assert exc.message == "Representative not found: u9"
    assert exc.details == {"resource_type": "Representative", "resource_id": "u9"}
