from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(int(year), int(month))[1]


def format_minutes(minutes: int) -> str:
    """Render a minute count as HH:MM (hours may exceed 24)."""
    minutes = max(int(minutes or 0), 0)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
