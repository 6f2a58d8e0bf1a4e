from __future__ import annotations

from typing import Optional, Sequence

from ...schedules.model import Slot
from ...schedules.timeparse import to_minutes
from ..model import ShiftPair
from .base import SlotMatchingStrategy


class OverlapMatchingStrategy(SlotMatchingStrategy):
    """Match each actual pair to the unused slot it overlaps most.

    A pair with only one recorded time is treated as a point in time. Ties (and
    pairs overlapping nothing) go to the slot whose start is nearest.
    """

    name = "overlap"

    def match(self, slots: Sequence[Slot], actuals: Sequence[ShiftPair]) -> list[tuple[Slot, ShiftPair]]:
        unused = list(slots)
        matched: list[tuple[Slot, ShiftPair]] = []

        for pair in actuals:
            if pair.is_empty or not unused:
                continue
            start = to_minutes(pair.time_in or pair.time_out)
            end = to_minutes(pair.time_out or pair.time_in)

            best: Optional[Slot] = None
            best_key: tuple[int, int] | None = None
            for slot in unused:
                s_start, s_end = to_minutes(slot.start_time), to_minutes(slot.end_time)
                overlap = max(0, min(end, s_end) - max(start, s_start))
                if start == end and s_start <= start < s_end:
                    overlap = max(overlap, 1)
                key = (-overlap, abs(start - s_start))
                if best_key is None or key < best_key:
                    best, best_key = slot, key

            unused.remove(best)
            matched.append((best, pair))

        matched.sort(key=lambda m: m[0].start_time)
        return matched
