from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import days_in_month
from ..core.constants import LEGACY_SHIFT_SLOTS
from ..core.enums import ConfirmationStatus, ExcusedStatus, RecordStatus
from ..core.exceptions import NotFoundError
from ..schedules.timeparse import minutes_between, try_parse_time

LEGACY_FIELD_RE = re.compile(r"^(in|out)([1-9]\d*)$")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _stored_time(value: Any) -> Optional[str]:
    # Stored JSON may hold unpadded or 12-hour text; unreadable values are kept as-is.
    if not value:
        return None
    return try_parse_time(value) or str(value)


def _parse_dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class ShiftPair:
    """One actual in/out pair (canonical HH:MM or None)."""

    time_in: Optional[str] = None
    time_out: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.time_in and not self.time_out

    def worked_minutes(self) -> int:
        # Only a complete pair with out strictly after in counts.
        start, end = try_parse_time(self.time_in), try_parse_time(self.time_out)
        if not start or not end:
            return 0
        return max(minutes_between(start, end), 0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShiftPair":
        return cls(
            time_in=_stored_time(data.get("in") or data.get("time_in")),
            time_out=_stored_time(data.get("out") or data.get("time_out")),
        )

    def to_dict(self) -> dict:
        return {"in": self.time_in, "out": self.time_out}


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: str
    new_value: str


@dataclass(frozen=True)
class EditRecord:
    edited_by: str
    edited_by_name: str
    edited_at: datetime
    changes: tuple[FieldChange, ...]

    def to_dict(self) -> dict:
        return {
            "edited_by": self.edited_by,
            "edited_by_name": self.edited_by_name,
            "edited_at": _iso(self.edited_at),
            "changes": [
                {"field": c.field, "old_value": c.old_value, "new_value": c.new_value} for c in self.changes
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EditRecord":
        return cls(
            edited_by=str(data.get("edited_by") or ""),
            edited_by_name=str(data.get("edited_by_name") or ""),
            edited_at=_parse_dt(data.get("edited_at")),
            changes=tuple(
                FieldChange(field=c["field"], old_value=c["old_value"], new_value=c["new_value"])
                for c in data.get("changes") or []
            ),
        )


@dataclass
class DayEntry:
    """Attendance data for one calendar day of a DTR."""

    day: int
    shifts: list[ShiftPair] = field(default_factory=list)
    late: int = 0
    undertime: int = 0
    total_minutes: int = 0
    status: str = ""
    confirmation_status: ConfirmationStatus = ConfirmationStatus.UNCONFIRMED
    confirmed_by: Optional[str] = None
    confirmed_by_name: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    excused_status: ExcusedStatus = ExcusedStatus.NONE
    excused_reason: str = ""
    edit_history: list[EditRecord] = field(default_factory=list)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmation_status == ConfirmationStatus.CONFIRMED

    @property
    def is_excused(self) -> bool:
        return self.excused_status == ExcusedStatus.EXCUSED

    def shift_fields(self) -> dict[str, Optional[str]]:
        """Flatten shifts into in1/out1, in2/out2, ... (at least the legacy four pairs)."""
        out: dict[str, Optional[str]] = {}
        count = max(len(self.shifts), LEGACY_SHIFT_SLOTS)
        for i in range(count):
            pair = self.shifts[i] if i < len(self.shifts) else ShiftPair()
            out[f"in{i + 1}"] = pair.time_in
            out[f"out{i + 1}"] = pair.time_out
        return out

    def has_legacy_times(self) -> bool:
        return any(not p.is_empty for p in self.shifts[:LEGACY_SHIFT_SLOTS])

    def worked_minutes(self) -> int:
        return sum(p.worked_minutes() for p in self.shifts)

    def clear_shifts(self) -> None:
        self.shifts = []

    def confirm(self, *, by: str, by_name: str, at: datetime) -> None:
        self.confirmation_status = ConfirmationStatus.CONFIRMED
        self.confirmed_by = by
        self.confirmed_by_name = by_name
        self.confirmed_at = at

    def unconfirm(self) -> None:
        self.confirmation_status = ConfirmationStatus.UNCONFIRMED
        self.confirmed_by = None
        self.confirmed_by_name = None
        self.confirmed_at = None

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "shifts": [p.to_dict() for p in self.shifts],
            "late": self.late,
            "undertime": self.undertime,
            "total_minutes": self.total_minutes,
            "status": self.status,
            "confirmation_status": self.confirmation_status.value,
            "confirmed_by": self.confirmed_by,
            "confirmed_by_name": self.confirmed_by_name,
            "confirmed_at": _iso(self.confirmed_at),
            "excused_status": self.excused_status.value,
            "excused_reason": self.excused_reason,
            "edit_history": [h.to_dict() for h in self.edit_history],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DayEntry":
        """Load an entry; legacy ``in1..out4`` keys fill the first shift pairs."""
        shifts = [ShiftPair.from_dict(p) for p in data.get("shifts") or []]
        legacy = {}
        for key, value in data.items():
            m = LEGACY_FIELD_RE.match(key)
            if m and value:
                legacy[(int(m.group(2)), m.group(1))] = value
        if legacy and not shifts:
            count = max(n for n, _ in legacy)
            shifts = [
                ShiftPair(_stored_time(legacy.get((n, "in"))), _stored_time(legacy.get((n, "out"))))
                for n in range(1, count + 1)
            ]

        return cls(
            day=int(data["day"]),
            shifts=shifts,
            late=int(data.get("late") or 0),
            undertime=int(data.get("undertime") or 0),
            total_minutes=int(data.get("total_minutes", data.get("totalHours")) or 0),
            status=str(data.get("status") or ""),
            confirmation_status=ConfirmationStatus(data.get("confirmation_status") or "unconfirmed"),
            confirmed_by=data.get("confirmed_by"),
            confirmed_by_name=data.get("confirmed_by_name"),
            confirmed_at=_parse_dt(data.get("confirmed_at")),
            excused_status=ExcusedStatus(data.get("excused_status") or "none"),
            excused_reason=str(data.get("excused_reason") or ""),
            edit_history=[EditRecord.from_dict(h) for h in data.get("edit_history") or []],
        )


@dataclass
class AttendanceRecord:
    """Domain entity: one person's DTR for one (month, year)."""

    dtr_id: Optional[int]
    user_id: int
    month: int
    year: int
    entries: list[DayEntry] = field(default_factory=list)
    status: RecordStatus = RecordStatus.DRAFT
    department: Optional[str] = None
    duty_hours: Optional[str] = None
    submitted_at: Optional[datetime] = None
    checked_by: Optional[str] = None
    checked_at: Optional[datetime] = None
    remarks: Optional[str] = None
    is_final: bool = False
    total_monthly_minutes: int = 0
    version: int = 0

    @classmethod
    def new(cls, *, user_id: int, month: int, year: int) -> "AttendanceRecord":
        return cls(
            dtr_id=None,
            user_id=int(user_id),
            month=int(month),
            year=int(year),
            entries=[DayEntry(day=d) for d in range(1, days_in_month(year, month) + 1)],
        )

    @property
    def is_locked(self) -> bool:
        if self.status == RecordStatus.APPROVED:
            return True
        return self.status == RecordStatus.REJECTED and self.is_final

    def entry(self, day: int) -> DayEntry:
        for e in self.entries:
            if e.day == day:
                return e
        raise NotFoundError(f"Entry for day {day} not found")

    def to_dict(self) -> dict:
        return {
            "dtr_id": self.dtr_id,
            "user_id": self.user_id,
            "month": self.month,
            "year": self.year,
            "status": self.status.value,
            "department": self.department,
            "duty_hours": self.duty_hours,
            "submitted_at": _iso(self.submitted_at),
            "checked_by": self.checked_by,
            "checked_at": _iso(self.checked_at),
            "remarks": self.remarks,
            "is_final": self.is_final,
            "total_monthly_minutes": self.total_monthly_minutes,
            "version": self.version,
            "entries": [e.to_dict() for e in self.entries],
        }
