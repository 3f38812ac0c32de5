"""Auth API: rep login/logout, password reset and password change.

Uses only injected services; denials surface as ClassConnectException
subclasses and are rendered by the registered exception handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from classconnect.api.v1.dependencies import (
    get_current_identity_id,
    get_login_gate,
    get_password_change_service,
    get_password_reset_flow,
)
from classconnect.application.services.login_gate import LoginGate
from classconnect.application.services.password_change import PasswordChangeService
from classconnect.application.services.password_reset import PasswordResetFlow
from classconnect.core.limiter import check_login_rate_per_email, limit_login, limit_reset
from classconnect.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    CompletePasswordResetRequest,
    PasswordResetRequestBody,
    RepLoginRequest,
    RepLoginResponse,
    RepProfileResponse,
    VerifyResetTokenRequest,
)
from classconnect.schemas.base import SuccessResponse

router = APIRouter()


@router.post("/rep/login", response_model=RepLoginResponse)
@limit_login
async def rep_login(
    request: Request,
    body: RepLoginRequest,
    gate: Annotated[LoginGate, Depends(get_login_gate)],
):
    """Sign in a Class Representative. Only the active holder of a seat is admitted."""
    check_login_rate_per_email(body.email or "")
    profile = await gate.login(email=body.email, password=body.password)
    return RepLoginResponse(
        uid=profile.identity_id,
        user=RepProfileResponse.from_profile(profile),
    )


@router.post("/rep/logout", response_model=SuccessResponse)
async def rep_logout(
    identity_id: Annotated[str, Depends(get_current_identity_id)],
    gate: Annotated[LoginGate, Depends(get_login_gate)],
):
    """Revoke the caller's sessions."""
    await gate.logout(identity_id)
    return SuccessResponse(message="Logged out successfully")


@router.post("/requestPasswordReset", response_model=SuccessResponse)
@limit_reset
async def request_password_reset(
    request: Request,
    body: PasswordResetRequestBody,
    flow: Annotated[PasswordResetFlow, Depends(get_password_reset_flow)],
):
    """Send a reset link if the email belongs to an active rep. Same answer either way."""
    message = await flow.request(body.email)
    return SuccessResponse(message=message)


@router.post("/verifyResetToken", response_model=SuccessResponse)
async def verify_reset_token(
    body: VerifyResetTokenRequest,
    flow: Annotated[PasswordResetFlow, Depends(get_password_reset_flow)],
):
    """Check the shape of a reset link before showing the new-password form."""
    flow.verify_token(body.token, body.email)
    return SuccessResponse(message="Reset link is valid")


@router.post("/completePasswordReset", response_model=SuccessResponse)
@limit_reset
async def complete_password_reset(
    request: Request,
    body: CompletePasswordResetRequest,
    flow: Annotated[PasswordResetFlow, Depends(get_password_reset_flow)],
):
    """Redeem a reset token and set a new password."""
    await flow.complete_for_email(body.email, body.reset_token, body.new_password)
    return SuccessResponse(
        message="Password reset successfully. Please log in with your new password."
    )


@router.post("/changePassword", response_model=ChangePasswordResponse)
async def change_password(
    body: ChangePasswordRequest,
    identity_id: Annotated[str, Depends(get_current_identity_id)],
    service: Annotated[PasswordChangeService, Depends(get_password_change_service)],
):
    """Change the signed-in rep's password."""
    version = await service.change(
        identity_id=identity_id,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    return ChangePasswordResponse(password_version=version)
