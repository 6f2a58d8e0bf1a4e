"""Lateness / undertime reconciliation of actual shift pairs against a ScheduleMap."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union

from ..core.enums import SlotKind, Weekday
from ..schedules.model import ScheduleMap, Slot
from ..schedules.timeparse import convert_to_24_hour, to_minutes
from .model import ShiftPair
from .strategies.base import SlotMatchingStrategy
from .strategies.ordinal_strategy import OrdinalMatchingStrategy

PairLike = Union[ShiftPair, Mapping[str, Any]]


@dataclass(frozen=True)
class ReconciliationResult:
    late: int = 0
    undertime: int = 0
    scheduled_start: Optional[str] = None
    scheduled_end: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "late": self.late,
            "undertime": self.undertime,
            "scheduled_start": self.scheduled_start,
            "scheduled_end": self.scheduled_end,
        }


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return convert_to_24_hour(str(value))


def normalize_pairs(pairs: Iterable[PairLike]) -> list[ShiftPair]:
    """Canonicalize times and sort by time-in; pairs without a time-in go last."""
    out = []
    for p in pairs or []:
        pair = p if isinstance(p, ShiftPair) else ShiftPair.from_dict(p)
        out.append(ShiftPair(_normalize(pair.time_in), _normalize(pair.time_out)))
    out.sort(key=lambda p: (p.time_in is None, p.time_in or ""))
    return out


def applicable_slots(schedule_map: ScheduleMap, on_date: date) -> list[Slot]:
    """Duty slots if the day has any, otherwise every slot of the day."""
    slots = schedule_map.slots_for(Weekday.from_date(on_date))
    duty = [s for s in slots if s.kind == SlotKind.DUTY]
    return duty or slots


class Reconciler:
    def __init__(self, strategy: Optional[SlotMatchingStrategy] = None):
        self._strategy = strategy or OrdinalMatchingStrategy()

    def reconcile(self, on_date: date, actual_pairs: Iterable[PairLike], schedule_map: ScheduleMap) -> ReconciliationResult:
        slots = applicable_slots(schedule_map, on_date)
        if not slots:
            return ReconciliationResult()

        late = 0
        undertime = 0
        for slot, pair in self._strategy.match(slots, normalize_pairs(actual_pairs)):
            # A missing time is never penalized; only recorded times count.
            if pair.time_in:
                late += max(0, to_minutes(pair.time_in) - to_minutes(slot.start_time))
            if pair.time_out:
                undertime += max(0, to_minutes(slot.end_time) - to_minutes(pair.time_out))

        return ReconciliationResult(
            late=late,
            undertime=undertime,
            scheduled_start=slots[0].start_time,
            scheduled_end=slots[-1].end_time,
        )


def reconcile(on_date: date, actual_pairs: Iterable[PairLike], schedule_map: ScheduleMap) -> ReconciliationResult:
    return Reconciler().reconcile(on_date, actual_pairs, schedule_map)
