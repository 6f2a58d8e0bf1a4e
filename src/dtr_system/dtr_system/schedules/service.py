from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.logging import get_logger
from ..common.validators import optional_text, require_non_empty
from ..core.enums import Role, SlotKind, Weekday
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import Actor
from .builder import build_schedule_map
from .model import DutyHourWindow, ScheduleDocument, ScheduleMap, Slot
from .repository import ScheduleRepository
from .timeparse import parse_time_strict

log = get_logger(__name__)


def find_conflict(schedule_map: ScheduleMap, window: DutyHourWindow) -> Optional[Slot]:
    """First slot on the window's weekday whose [start, end) intersects it."""
    for slot in schedule_map.slots_for(window.day):
        if window.start_time < slot.end_time and window.end_time > slot.start_time:
            return slot
    return None


class DutyHourService:
    """Office-side assignment of duty windows, conflict-checked against the schedule."""

    def __init__(self, schedules: ScheduleRepository, *, clock: Callable = now_local):
        self._schedules = schedules
        self._clock = clock

    def _load(self, schedule_id: int) -> ScheduleDocument:
        doc = self._schedules.get_by_id(int(schedule_id))
        if not doc:
            raise NotFoundError("Schedule not found")
        return doc

    @staticmethod
    def _authorize(actor: Actor, doc: ScheduleDocument) -> None:
        if actor.role == Role.ADMIN:
            return
        if actor.role != Role.OFFICE:
            raise AuthorizationError("Only office staff can manage duty hours")
        if doc.office_id is None or actor.office_id != doc.office_id:
            raise AuthorizationError("This person is not deployed to your office")

    def get_schedule_map(self, schedule_id: int) -> ScheduleMap:
        doc = self._load(schedule_id)
        return build_schedule_map(doc.class_entries, doc.duty_windows)

    def list_duty_windows(self, schedule_id: int) -> list[DutyHourWindow]:
        return list(self._load(schedule_id).duty_windows)

    def add_duty_window(
        self,
        *,
        actor: Actor,
        schedule_id: int,
        day: str,
        start_time: str,
        end_time: str,
        location: str,
        notes: Optional[str] = None,
    ) -> DutyHourWindow:
        doc = self._load(schedule_id)
        self._authorize(actor, doc)

        window = DutyHourWindow(
            day=Weekday.parse(require_non_empty(day, "Day")),
            start_time=parse_time_strict(require_non_empty(start_time, "Start time"), "Start time"),
            end_time=parse_time_strict(require_non_empty(end_time, "End time"), "End time"),
            location=require_non_empty(location, "Location"),
            notes=optional_text(notes),
        )
        if window.end_time <= window.start_time:
            raise ValidationError("End time must be after start time")

        schedule_map = build_schedule_map(doc.class_entries, doc.duty_windows)
        clash = find_conflict(schedule_map, window)
        if clash:
            kind = "class" if clash.kind == SlotKind.CLASS else "duty hours"
            raise ConflictError(
                f"{window.day.value} {window.start_time}-{window.end_time} overlaps existing {kind} "
                f"{clash.start_time}-{clash.end_time} ({clash.description})"
            )

        doc.duty_windows.append(window)
        doc.last_modified_by = actor.user_id
        doc.last_modified_at = self._clock()
        self._schedules.save(doc)

        log.info(
            "duty_window_added",
            schedule_id=doc.schedule_id,
            day=window.day.value,
            start=window.start_time,
            end=window.end_time,
            actor=actor.user_id,
        )
        return window

    def remove_duty_window(
        self,
        *,
        actor: Actor,
        schedule_id: int,
        day: str,
        start_time: str,
        end_time: str,
    ) -> None:
        doc = self._load(schedule_id)
        self._authorize(actor, doc)

        key = (
            Weekday.parse(day),
            parse_time_strict(start_time, "Start time"),
            parse_time_strict(end_time, "End time"),
        )
        remaining = [w for w in doc.duty_windows if w.key() != key]
        if len(remaining) == len(doc.duty_windows):
            raise NotFoundError("Duty hour not found")

        doc.duty_windows = remaining
        doc.last_modified_by = actor.user_id
        doc.last_modified_at = self._clock()
        self._schedules.save(doc)

        log.info("duty_window_removed", schedule_id=doc.schedule_id, day=key[0].value, start=key[1], end=key[2])

    def schedule_for_date(self, *, user_id: int, on_date: date) -> list[Slot]:
        """Slots that apply to the user on a calendar date (empty when unscheduled)."""
        doc = self._schedules.resolve(int(user_id))
        if not doc:
            return []
        schedule_map = build_schedule_map(doc.class_entries, doc.duty_windows)
        return schedule_map.slots_for(Weekday.from_date(on_date))
