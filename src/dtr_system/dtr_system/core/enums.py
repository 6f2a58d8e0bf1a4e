from __future__ import annotations

from datetime import date
from enum import Enum

from .exceptions import ValidationError


class Role(str, Enum):
    """Roles handed in by the identity provider."""

    PERSON = "person"
    OFFICE = "office"
    ADMIN = "admin"


class Weekday(str, Enum):
    """Closed set of schedule keys (full weekday names)."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        # date.weekday(): Monday == 0
        return list(cls)[value.weekday()]

    @classmethod
    def parse(cls, value: str) -> "Weekday":
        v = (value or "").strip().capitalize()
        try:
            return cls(v)
        except ValueError:
            raise ValidationError(f"Invalid day: {value!r}")


class SlotKind(str, Enum):
    CLASS = "class"
    DUTY = "duty"


class ConfirmationStatus(str, Enum):
    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"


class ExcusedStatus(str, Enum):
    NONE = "none"
    EXCUSED = "excused"


class RecordStatus(str, Enum):
    """Lifecycle of a monthly DTR."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class OwnerType(str, Enum):
    """Which kind of profile a schedule document belongs to."""

    TRAINEE = "trainee"
    SCHOLAR = "scholar"
