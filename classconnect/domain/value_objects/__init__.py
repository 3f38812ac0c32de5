"""Domain value objects and shared value types."""

from classconnect.domain.value_objects.core import RepScope, normalize_email

__all__ = [
    "RepScope",
    "normalize_email",
]
