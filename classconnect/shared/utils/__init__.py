"""Shared utilities: datetime and generators."""

from classconnect.shared.utils.datetime import (
    ensure_utc,
    parse_stored_datetime,
    utc_now,
)
from classconnect.shared.utils.generators import generate_cuid, generate_reset_token

__all__ = [
    "generate_cuid",
    "generate_reset_token",
    "utc_now",
    "ensure_utc",
    "parse_stored_datetime",
]
