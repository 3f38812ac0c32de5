"""Application services (use cases) for the representative credential core."""

from classconnect.application.services.login_gate import LoginGate
from classconnect.application.services.password_change import PasswordChangeService
from classconnect.application.services.password_reset import PasswordResetFlow
from classconnect.application.services.rep_lifecycle import RepLifecycleManager

__all__ = [
    "LoginGate",
    "PasswordChangeService",
    "PasswordResetFlow",
    "RepLifecycleManager",
]
