from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional

from ..core.enums import OwnerType, SlotKind, Weekday
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ClassScheduleEntry:
    """One subject line of an uploaded class schedule (read-only here)."""

    subject_code: str
    subject_name: str
    schedule: str
    section: str = ""
    instructor: str = ""
    units: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClassScheduleEntry":
        return cls(
            subject_code=str(data.get("subject_code") or data.get("subjectCode") or ""),
            subject_name=str(data.get("subject_name") or data.get("subjectName") or ""),
            schedule=str(data.get("schedule") or ""),
            section=str(data.get("section") or ""),
            instructor=str(data.get("instructor") or ""),
            units=float(data.get("units") or 0),
        )

    def to_dict(self) -> dict:
        return {
            "subject_code": self.subject_code,
            "subject_name": self.subject_name,
            "schedule": self.schedule,
            "section": self.section,
            "instructor": self.instructor,
            "units": self.units,
        }


@dataclass(frozen=True)
class DutyHourWindow:
    """Office-assigned duty window; times are canonical HH:MM."""

    day: Weekday
    start_time: str
    end_time: str
    location: str
    notes: Optional[str] = None

    def key(self) -> tuple[Weekday, str, str]:
        return (self.day, self.start_time, self.end_time)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DutyHourWindow":
        return cls(
            day=Weekday.parse(str(data.get("day") or "")),
            start_time=str(data.get("start_time") or data.get("startTime") or ""),
            end_time=str(data.get("end_time") or data.get("endTime") or ""),
            location=str(data.get("location") or ""),
            notes=data.get("notes") or None,
        )

    def to_dict(self) -> dict:
        return {
            "day": self.day.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "location": self.location,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Slot:
    start_time: str
    end_time: str
    kind: SlotKind
    description: str

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "kind": self.kind.value,
            "description": self.description,
        }


class ScheduleMap:
    """Per-weekday, start-time ordered obligation slots.

    Derived only; rebuilt from class entries and duty windows whenever needed.
    """

    def __init__(self, slots: Optional[Mapping[Weekday, list[Slot]]] = None):
        self._slots: dict[Weekday, list[Slot]] = {day: [] for day in Weekday}
        for day, items in (slots or {}).items():
            self._slots[Weekday(day)] = list(items)

    def add(self, day: Weekday, slot: Slot) -> None:
        self._slots[day].append(slot)

    def sort(self) -> None:
        for items in self._slots.values():
            items.sort(key=lambda s: s.start_time)

    def slots_for(self, day: Weekday) -> list[Slot]:
        return list(self._slots[day])

    def __getitem__(self, day: Weekday) -> list[Slot]:
        return self.slots_for(day)

    def __iter__(self) -> Iterator[Weekday]:
        return iter(self._slots)

    def to_dict(self) -> dict:
        return {day.value: [s.to_dict() for s in items] for day, items in self._slots.items()}


@dataclass
class ScheduleDocument:
    """Schedule container of one trainee application or one scholar profile."""

    schedule_id: int
    user_id: int
    owner_type: OwnerType
    application_id: Optional[int] = None
    scholar_id: Optional[int] = None
    office_id: Optional[int] = None
    class_entries: list[ClassScheduleEntry] = field(default_factory=list)
    duty_windows: list[DutyHourWindow] = field(default_factory=list)
    last_modified_by: Optional[int] = None
    last_modified_at: Optional[datetime] = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.application_id and self.scholar_id:
            raise ValidationError("Cannot have both applicationId and scholarId")
        if self.owner_type == OwnerType.TRAINEE and not self.application_id:
            raise ValidationError("applicationId is required for trainee schedules")
        if self.owner_type == OwnerType.SCHOLAR and not self.scholar_id:
            raise ValidationError("scholarId is required for scholar schedules")
        if self.owner_type == OwnerType.SCHOLAR and self.class_entries:
            raise ValidationError("Scholar schedules carry duty hours only")

    def to_dict(self) -> dict:
        return {
            "schedule_id": self.schedule_id,
            "user_id": self.user_id,
            "owner_type": self.owner_type.value,
            "application_id": self.application_id,
            "scholar_id": self.scholar_id,
            "office_id": self.office_id,
            "class_entries": [c.to_dict() for c in self.class_entries],
            "duty_windows": [d.to_dict() for d in self.duty_windows],
            "last_modified_by": self.last_modified_by,
            "last_modified_at": self.last_modified_at.isoformat() if self.last_modified_at else None,
            "version": self.version,
        }
