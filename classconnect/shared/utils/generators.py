"""ID and secret generators (CUID, reset tokens)."""

import secrets

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

# 32 random bytes -> 43 URL-safe characters, above the client-side minimum of 32.
RESET_TOKEN_BYTES = 32


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_reset_token() -> str:
    """Return a cryptographically random, URL-safe password-reset token."""
    return secrets.token_urlsafe(RESET_TOKEN_BYTES)
