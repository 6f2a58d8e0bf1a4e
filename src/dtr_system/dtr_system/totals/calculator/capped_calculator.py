from __future__ import annotations

from ...attendance.model import DayEntry
from ...core.constants import DAILY_CAP_MINUTES
from .base import MonthlyTotalCalculator


class CappedConfirmedCalculator(MonthlyTotalCalculator):
    """Standard rule: confirmed days only, each capped at the daily ceiling."""

    def __init__(self, cap_minutes: int = DAILY_CAP_MINUTES):
        self._cap = int(cap_minutes)

    def counted_minutes(self, entry: DayEntry) -> int:
        if not entry.is_confirmed:
            return 0
        return min(max(int(entry.total_minutes or 0), 0), self._cap)
