from __future__ import annotations

from typing import Iterable

from ..common.logging import get_logger
from ..core.enums import SlotKind
from .model import ClassScheduleEntry, DutyHourWindow, ScheduleMap, Slot
from .timeparse import parse_schedule_string

log = get_logger(__name__)


def build_schedule_map(
    class_entries: Iterable[ClassScheduleEntry],
    duty_windows: Iterable[DutyHourWindow],
) -> ScheduleMap:
    """Merge class entries and duty windows into one ScheduleMap.

    Overlapping slots are kept as-is; overlap is only refused when a duty window
    is assigned, so older data still renders.
    """
    schedule_map = ScheduleMap()

    for entry in class_entries or []:
        parsed = parse_schedule_string(entry.schedule)
        if not parsed:
            log.warning("schedule_string_unparsed", subject=entry.subject_code, schedule=entry.schedule)
            continue
        for day in parsed.days:
            schedule_map.add(
                day,
                Slot(
                    start_time=parsed.start_time,
                    end_time=parsed.end_time,
                    kind=SlotKind.CLASS,
                    description=f"{entry.subject_code} - {entry.subject_name}",
                ),
            )

    for window in duty_windows or []:
        schedule_map.add(
            window.day,
            Slot(
                start_time=window.start_time,
                end_time=window.end_time,
                kind=SlotKind.DUTY,
                description=f"Duty at {window.location}",
            ),
        )

    schedule_map.sort()
    return schedule_map
