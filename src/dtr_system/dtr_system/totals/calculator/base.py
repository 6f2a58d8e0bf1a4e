from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ...attendance.model import DayEntry


class MonthlyTotalCalculator(ABC):
    """Calculator interface (Strategy Pattern for the official monthly total)."""

    @abstractmethod
    def counted_minutes(self, entry: DayEntry) -> int:
        """Minutes this day contributes to the monthly total."""

        raise NotImplementedError

    def monthly_minutes(self, entries: Iterable[DayEntry]) -> int:
        return sum(self.counted_minutes(e) for e in entries)
