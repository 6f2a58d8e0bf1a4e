import pytest

from dtr_system.core.enums import Weekday
from dtr_system.core.exceptions import ValidationError
from dtr_system.schedules.timeparse import (
    convert_to_24_hour,
    minutes_between,
    optional_time,
    parse_day_abbreviations,
    parse_schedule_string,
    parse_time_strict,
)


def test_mw_morning_class_parses_to_monday_wednesday():
    parsed = parse_schedule_string("MW 7:00-8:30 AM")

    assert parsed.days == [Weekday.MONDAY, Weekday.WEDNESDAY]
    assert parsed.start_time == "07:00"
    assert parsed.end_time == "08:30"


def test_two_letter_tokens_win_over_single_letters():
    assert parse_day_abbreviations("TTh") == [Weekday.TUESDAY, Weekday.THURSDAY]
    assert parse_day_abbreviations("SSu") == [Weekday.SATURDAY, Weekday.SUNDAY]
    assert parse_day_abbreviations("MTWThFSSu") == list(Weekday)


def test_unknown_day_characters_are_skipped():
    assert parse_day_abbreviations("M/XW") == [Weekday.MONDAY, Weekday.WEDNESDAY]


def test_afternoon_schedule_uses_end_meridiem_for_start():
    parsed = parse_schedule_string("TTh 1:00-2:30 PM")

    assert parsed.days == [Weekday.TUESDAY, Weekday.THURSDAY]
    assert (parsed.start_time, parsed.end_time) == ("13:00", "14:30")


def test_start_flips_meridiem_when_range_crosses_noon():
    parsed = parse_schedule_string("F 11:00-1:00 PM")

    assert (parsed.start_time, parsed.end_time) == ("11:00", "13:00")


def test_explicit_meridiem_on_both_ends():
    parsed = parse_schedule_string("F 10:00 AM-12:00 PM")

    assert parsed.days == [Weekday.FRIDAY]
    assert (parsed.start_time, parsed.end_time) == ("10:00", "12:00")


def test_schedule_without_time_range_is_not_parsed():
    assert parse_schedule_string("TBA") is None
    assert parse_schedule_string("") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12:00 AM", "00:00"),
        ("12:30 PM", "12:30"),
        ("1:05 pm", "13:05"),
        ("7 AM", "07:00"),
        ("08:15", "08:15"),
        ("13:00:00", "13:00"),
        ("700", "07:00"),
        ("1330", "13:30"),
        ("9", "09:00"),
    ],
)
def test_convert_to_24_hour_accepted_formats(raw, expected):
    assert convert_to_24_hour(raw) == expected


def test_unreadable_time_falls_back_to_midnight():
    assert convert_to_24_hour("after lunch") == "00:00"
    assert convert_to_24_hour("") == "00:00"


def test_strict_parse_rejects_what_lenient_parse_would_zero():
    with pytest.raises(ValidationError):
        parse_time_strict("after lunch", "Start time")
    with pytest.raises(ValidationError):
        parse_time_strict("25:00", "Start time")


def test_optional_time_maps_blank_to_none():
    assert optional_time("  ") is None
    assert optional_time(None) is None
    assert optional_time("8:00 AM") == "08:00"


def test_minutes_between_is_end_minus_start():
    assert minutes_between("08:00", "12:00") == 240
    assert minutes_between("12:00", "08:00") == -240
