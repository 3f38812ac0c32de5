"""Domain enumerations for ClassConnect.

Enums represent fixed sets of domain values (account role, assignment action).
"""

from enum import Enum


class Role(str, Enum):
    """Account role stored on the user document.

    Only REP participates in the credential lifecycle. Any role string the
    store returns that is not modelled here parses to OTHER, so checks
    against the role stay exhaustive.
    """

    REP = "rep"
    FACULTY = "faculty"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: object) -> "Role":
        """Return the Role for a stored value; unknown or missing values become OTHER."""
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                return cls.OTHER
        return cls.OTHER

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid role values as strings."""
        return [role.value for role in cls]


class AssignmentAction(str, Enum):
    """Kind of entry in the append-only assignment log."""

    ASSIGNED = "assigned"
    REASSIGNED = "reassigned"
    DEACTIVATED = "deactivated"
