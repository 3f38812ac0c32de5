"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Central limit strings and decorators keep
rate limits DRY.
"""

import time
from collections import defaultdict
from threading import Lock

from fastapi import HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
LOGIN_LIMIT = "10/minute"
RESET_LIMIT = "5/minute"
ADMIN_WRITE_LIMIT = "30/minute"
LOGIN_PER_EMAIL_LIMIT = 5  # attempts per window per normalized email
LOGIN_PER_EMAIL_WINDOW_SEC = 60

limit_login = limiter.limit(LOGIN_LIMIT)
limit_reset = limiter.limit(RESET_LIMIT)
limit_admin_writes = limiter.limit(ADMIN_WRITE_LIMIT)

# In-memory sliding window per email, so one account cannot be brute-forced
# from many addresses.
_login_per_email: defaultdict[str, list[float]] = defaultdict(list)
_login_per_email_lock = Lock()


def check_login_rate_per_email(email: str) -> None:
    """Raise 429 if too many login attempts for this email in the window."""
    key = (email or "").strip().lower()
    if not key:
        return
    now = time.monotonic()
    cutoff = now - LOGIN_PER_EMAIL_WINDOW_SEC
    with _login_per_email_lock:
        attempts = [t for t in _login_per_email[key] if t > cutoff]
        if len(attempts) >= LOGIN_PER_EMAIL_LIMIT:
            _login_per_email[key] = attempts
            raise HTTPException(
                status_code=429,
                detail="Too many login attempts; try again later",
            )
        attempts.append(now)
        _login_per_email[key] = attempts


def reset_login_rate_state() -> None:
    """Forget all per-email attempts (tests)."""
    with _login_per_email_lock:
        _login_per_email.clear()
