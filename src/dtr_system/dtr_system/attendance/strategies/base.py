from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...schedules.model import Slot
from ..model import ShiftPair


class SlotMatchingStrategy(ABC):
    """Strategy Pattern: decide which actual shift pair is measured against which slot."""

    name: str = ""

    @abstractmethod
    def match(self, slots: Sequence[Slot], actuals: Sequence[ShiftPair]) -> list[tuple[Slot, ShiftPair]]:
        raise NotImplementedError
