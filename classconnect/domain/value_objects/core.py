"""Domain value objects for ClassConnect.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

from dataclasses import dataclass


def normalize_email(raw: object) -> str:
    """Return the lookup form of an email address (trimmed, lower-cased).

    None and non-string input normalize to the empty string so callers can
    treat "missing" and "blank" identically.
    """
    if raw is None:
        return ""
    return str(raw).strip().lower()


@dataclass(frozen=True)
class RepScope:
    """Representative seat: (college, department, slot, year).

    At most one identity may be the active holder of a given scope. Values
    are carried through as opaque strings; only presence is validated.
    """

    college_id: str
    department_id: str
    slot: str
    year: str

    def __post_init__(self) -> None:
        for field_name in ("college_id", "department_id", "slot", "year"):
            value = getattr(self, field_name)
            if value is None or not str(value).strip():
                raise ValueError(f"{field_name} must be a non-empty string")
            object.__setattr__(self, field_name, str(value).strip())

    @property
    def lock_key(self) -> str:
        """Stable key used to serialise lifecycle changes for this seat."""
        return f"{self.college_id}/{self.department_id}/{self.slot}/{self.year}"

    def to_fields(self) -> dict[str, str]:
        """Document fields for this scope (store field names)."""
        return {
            "collegeId": self.college_id,
            "departmentId": self.department_id,
            "slot": self.slot,
            "year": self.year,
        }

    @classmethod
    def from_fields(cls, data: dict) -> "RepScope | None":
        """Build a scope from document fields; None when any part is missing."""
        try:
            return cls(
                college_id=data.get("collegeId"),
                department_id=data.get("departmentId"),
                slot=data.get("slot"),
                year=data.get("year"),
            )
        except ValueError:
            return None
