"""Password strength rules and credential generation (pure, no I/O)."""

from __future__ import annotations

import re
import secrets
import string

from classconnect.application.dtos.representative import StrengthResult

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%&*+"

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (
        re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]"),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
)

# Shortest name part that still yields MIN_PASSWORD_LENGTH with "@NNNN".
_MIN_NAME_PART = MIN_PASSWORD_LENGTH - 5


def validate_strength(password: str | None) -> StrengthResult:
    """Check a candidate password against every rule.

    Args:
        password: Candidate password (None is treated as empty).

    Returns:
        StrengthResult with one message per failing rule, in rule order.
    """
    password = password or ""
    errors: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    for pattern, message in _RULES:
        if not pattern.search(password):
            errors.append(message)
    return StrengthResult(is_valid=not errors, errors=tuple(errors))


def _name_part(seed: str | None) -> str:
    if not seed:
        return ""
    first = seed.strip().split(" ", 1)[0]
    letters = "".join(ch for ch in first if ch in string.ascii_letters)
    return letters[:1].upper() + letters[1:].lower()


def generate_password(seed: str | None = None) -> str:
    """Generate a rep password in the FirstName@NNNN style.

    The first word of seed (letters only) becomes the name part; short or
    missing names are padded with random lowercase letters. Without a usable
    seed the name part is random. The result always passes validate_strength.
    """
    name = _name_part(seed)
    if not name:
        name = secrets.choice(string.ascii_uppercase)
    while len(name) < _MIN_NAME_PART or not any(ch.islower() for ch in name):
        name += secrets.choice(string.ascii_lowercase)
    return f"{name}@{1000 + secrets.randbelow(9000)}"


def generate_unguessable_password() -> str:
    """Random credential used to lock a superseded rep out at the provider."""
    return f"{secrets.token_urlsafe(32)}Aa1!"
