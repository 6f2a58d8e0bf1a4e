from __future__ import annotations

from typing import Sequence

from ...schedules.model import Slot
from ..model import ShiftPair
from .base import SlotMatchingStrategy


class OrdinalMatchingStrategy(SlotMatchingStrategy):
    """Slot i goes with actual pair i; extra slots or pairs are ignored."""

    name = "ordinal"

    def match(self, slots: Sequence[Slot], actuals: Sequence[ShiftPair]) -> list[tuple[Slot, ShiftPair]]:
        return list(zip(slots, actuals))
