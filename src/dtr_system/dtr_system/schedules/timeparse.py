"""Time and weekday parsing for free-text class schedules and duty-hour fields.

Canonical times are 24-hour, zero-padded ``HH:MM`` strings, so plain string
comparison orders them correctly.

Class schedules arrive as free text from uploads (``"MW 7:00-8:30 AM"``,
``"TTh 1:00-2:30 PM"``, ``"F 10:00 AM-12:00 PM"``). ``convert_to_24_hour`` is
lenient: input it cannot read becomes ``00:00`` and a ``time_parse_fallback``
warning is logged. Structured inputs go through ``parse_time_strict`` instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..common.logging import get_logger
from ..core.constants import FALLBACK_TIME
from ..core.enums import Weekday
from ..core.exceptions import ValidationError

log = get_logger(__name__)

_SINGLE_DAYS = {
    "M": Weekday.MONDAY,
    "T": Weekday.TUESDAY,
    "W": Weekday.WEDNESDAY,
    "F": Weekday.FRIDAY,
    "S": Weekday.SATURDAY,
}
_DOUBLE_DAYS = {
    "Th": Weekday.THURSDAY,
    "Su": Weekday.SUNDAY,
}

_MERIDIEM_FULL_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE)
_MERIDIEM_HOUR_RE = re.compile(r"(\d{1,2})\s*(AM|PM)", re.IGNORECASE)
_CANONICAL_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?")
_DIGITS_RE = re.compile(r"\d{1,4}")

_SCHEDULE_RE = re.compile(
    r"([A-Za-z]+)\s+(\d{1,2}(?::\d{2})?)\s*(AM|PM)?\s*[-–]\s*(\d{1,2}(?::\d{2})?)\s*(AM|PM)?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ParsedSchedule:
    days: list[Weekday]
    start_time: str
    end_time: str


def parse_day_abbreviations(text: str) -> list[Weekday]:
    """Decode ``"MWF"``/``"TTh"``/``"SSu"`` into weekdays, left to right.

    Two-letter tokens win over single letters; anything unknown is skipped.
    """
    days: list[Weekday] = []
    i = 0
    text = text or ""
    while i < len(text):
        pair = text[i : i + 2]
        if pair in _DOUBLE_DAYS:
            days.append(_DOUBLE_DAYS[pair])
            i += 2
        elif text[i] in _SINGLE_DAYS:
            days.append(_SINGLE_DAYS[text[i]])
            i += 1
        else:
            i += 1
    return days


def _apply_meridiem(hours: int, period: str) -> int:
    period = period.upper()
    if period == "PM" and hours != 12:
        return hours + 12
    if period == "AM" and hours == 12:
        return 0
    return hours


def _fmt(hours: int, minutes: int) -> Optional[str]:
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return f"{hours:02d}:{minutes:02d}"


def _parse(text: str) -> Optional[str]:
    value = (text or "").strip()
    if not value:
        return None

    m = _MERIDIEM_FULL_RE.search(value)
    if m:
        hours = int(m.group(1))
        if not 1 <= hours <= 12:
            return None
        return _fmt(_apply_meridiem(hours, m.group(3)), int(m.group(2)))

    m = _MERIDIEM_HOUR_RE.search(value)
    if m:
        hours = int(m.group(1))
        if not 1 <= hours <= 12:
            return None
        return _fmt(_apply_meridiem(hours, m.group(2)), 0)

    m = _CANONICAL_RE.fullmatch(value)
    if m:
        return _fmt(int(m.group(1)), int(m.group(2)))

    if _DIGITS_RE.fullmatch(value):
        if len(value) <= 2:
            return _fmt(int(value), 0)
        return _fmt(int(value[:-2]), int(value[-2:]))

    return None


def try_parse_time(text: Optional[str]) -> Optional[str]:
    """``HH:MM`` for any accepted format, None when unreadable or blank."""
    return _parse(str(text)) if text is not None else None


def convert_to_24_hour(text: str) -> str:
    """Lenient conversion to ``HH:MM``; unreadable input degrades to ``00:00``."""
    parsed = _parse(text)
    if parsed is None:
        log.warning("time_parse_fallback", raw=text, fallback=FALLBACK_TIME)
        return FALLBACK_TIME
    return parsed


def parse_time_strict(text: str, field_name: str = "Time") -> str:
    parsed = _parse(text)
    if parsed is None:
        raise ValidationError(f"{field_name} is not a valid time: {text!r}")
    return parsed


def optional_time(text: Optional[str], field_name: str = "Time") -> Optional[str]:
    """Strict parse that maps blank input to None (a cleared field)."""
    if text is None or not str(text).strip():
        return None
    return parse_time_strict(str(text), field_name)


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_between(start: str, end: str) -> int:
    """Signed difference ``end - start`` in minutes."""
    return to_minutes(end) - to_minutes(start)


def _flip(period: str) -> str:
    return "AM" if period.upper() == "PM" else "PM"


def parse_schedule_string(schedule: str) -> Optional[ParsedSchedule]:
    """Parse ``"<days> <start>[AM|PM]-<end>[AM|PM]"``.

    A start without meridiem borrows the end's; if that puts the start after the
    end (``"11:00-1:00 PM"``) the opposite meridiem is used for the start.
    Returns None when the string has no recognizable day/time range.
    """
    m = _SCHEDULE_RE.search(schedule or "")
    if not m:
        return None

    day_str, start_raw, start_period, end_raw, end_period = m.groups()
    days = parse_day_abbreviations(day_str)
    if not days:
        return None

    end_period = end_period or start_period
    start_text = f"{start_raw} {start_period or end_period}" if (start_period or end_period) else start_raw
    end_text = f"{end_raw} {end_period}" if end_period else end_raw

    start_time = convert_to_24_hour(start_text)
    end_time = convert_to_24_hour(end_text)

    if not start_period and end_period and start_time > end_time:
        start_time = convert_to_24_hour(f"{start_raw} {_flip(end_period)}")

    return ParsedSchedule(days=days, start_time=start_time, end_time=end_time)
