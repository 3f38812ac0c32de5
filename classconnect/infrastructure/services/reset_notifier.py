"""Reset-token delivery.

Delivery mechanics (email templates, SMTP, push) live outside this service;
the log-only notifier records that a token was issued without its value.
"""

from __future__ import annotations

import logging
from datetime import datetime

from classconnect.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


class LogOnlyResetNotifier:
    """IResetNotifier implementation that logs instead of sending email.

    Use when no mail transport is configured. The token itself is never logged.
    """

    async def send_reset_token(
        self,
        email: str,
        identity_id: str,
        token: str,
        expires_at: datetime,
    ) -> None:
        logger.info(
            "Password reset: would send reset link to %s (identity=%s, expires=%s)",
            _mask_email(email),
            identity_id,
            expires_at.isoformat(),
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Password reset token issued (%d chars)", len(token))
