from datetime import date

import pytest

from dtr_system.attendance.factory import SlotMatchingFactory
from dtr_system.attendance.model import ShiftPair
from dtr_system.attendance.reconcile import Reconciler, normalize_pairs, reconcile
from dtr_system.attendance.strategies.overlap_strategy import OverlapMatchingStrategy
from dtr_system.core.enums import Weekday
from dtr_system.schedules.builder import build_schedule_map
from dtr_system.schedules.model import ClassScheduleEntry, DutyHourWindow

MONDAY = date(2025, 3, 3)


def _duty(*windows):
    return build_schedule_map(
        [],
        [DutyHourWindow(day=Weekday.MONDAY, start_time=s, end_time=e, location="Library") for s, e in windows],
    )


def test_late_and_undertime_against_single_slot():
    result = reconcile(MONDAY, [{"in": "08:15", "out": "11:45"}], _duty(("08:00", "12:00")))

    assert (result.late, result.undertime) == (15, 15)
    assert (result.scheduled_start, result.scheduled_end) == ("08:00", "12:00")


def test_missing_out_is_not_undertime():
    result = reconcile(MONDAY, [{"in": "08:00", "out": None}], _duty(("08:00", "12:00")))

    assert (result.late, result.undertime) == (0, 0)


def test_missing_out_still_counts_lateness():
    result = reconcile(MONDAY, [ShiftPair("08:40", None)], _duty(("08:00", "12:00")))

    assert (result.late, result.undertime) == (40, 0)


def test_empty_pair_is_skipped():
    result = reconcile(MONDAY, [ShiftPair()], _duty(("08:00", "12:00")))

    assert (result.late, result.undertime) == (0, 0)


def test_early_arrival_and_late_leave_are_not_negative():
    result = reconcile(MONDAY, [{"in": "07:30", "out": "12:30"}], _duty(("08:00", "12:00")))

    assert (result.late, result.undertime) == (0, 0)


def test_unscheduled_day_has_no_reference():
    result = reconcile(date(2025, 3, 4), [{"in": "10:00", "out": "11:00"}], _duty(("08:00", "12:00")))

    assert result.to_dict() == {"late": 0, "undertime": 0, "scheduled_start": None, "scheduled_end": None}


def test_duty_slots_take_precedence_over_classes():
    schedule_map = build_schedule_map(
        [ClassScheduleEntry(subject_code="IT101", subject_name="Intro", schedule="M 7:00-8:00 AM")],
        [DutyHourWindow(day=Weekday.MONDAY, start_time="13:00", end_time="17:00", location="Library")],
    )

    result = reconcile(MONDAY, [{"in": "13:05", "out": "17:00"}], schedule_map)

    assert (result.late, result.undertime) == (5, 0)
    assert (result.scheduled_start, result.scheduled_end) == ("13:00", "17:00")


def test_class_slots_used_when_no_duty_that_day():
    schedule_map = build_schedule_map(
        [ClassScheduleEntry(subject_code="IT101", subject_name="Intro", schedule="M 7:00-8:00 AM")],
        [],
    )

    result = reconcile(MONDAY, [{"in": "7:10 AM", "out": "7:50 AM"}], schedule_map)

    assert (result.late, result.undertime) == (10, 10)


def test_pairs_are_sorted_before_ordinal_pairing():
    schedule_map = _duty(("08:00", "10:00"), ("13:00", "15:00"))
    actual = [{"in": "13:20", "out": "15:00"}, {"in": "08:05", "out": "09:50"}]

    result = reconcile(MONDAY, actual, schedule_map)

    assert (result.late, result.undertime) == (25, 10)
    assert (result.scheduled_start, result.scheduled_end) == ("08:00", "15:00")


def test_extra_actual_pairs_are_ignored_by_ordinal_matching():
    result = reconcile(
        MONDAY,
        [{"in": "08:00", "out": "12:00"}, {"in": "13:00", "out": "14:00"}],
        _duty(("08:00", "12:00")),
    )

    assert (result.late, result.undertime) == (0, 0)


def test_normalize_pairs_canonicalizes_and_puts_missing_start_last():
    pairs = normalize_pairs([{"in": None, "out": "5:00 PM"}, {"in": "1:00 PM", "out": "3 PM"}, {"in": "8:15 AM"}])

    assert pairs == [ShiftPair("08:15", None), ShiftPair("13:00", "15:00"), ShiftPair(None, "17:00")]


def test_overlap_matching_pairs_afternoon_shift_with_afternoon_slot():
    schedule_map = _duty(("08:00", "10:00"), ("13:00", "15:00"))
    actual = [{"in": "13:10", "out": "15:00"}]

    ordinal = reconcile(MONDAY, actual, schedule_map)
    overlap = Reconciler(OverlapMatchingStrategy()).reconcile(MONDAY, actual, schedule_map)

    assert ordinal.late == 310
    assert (overlap.late, overlap.undertime) == (10, 0)


def test_overlap_matching_uses_each_slot_once():
    schedule_map = _duty(("08:00", "10:00"), ("13:00", "15:00"))
    actual = [{"in": "08:30", "out": "09:00"}, {"in": "09:00", "out": "10:00"}]

    result = Reconciler(OverlapMatchingStrategy()).reconcile(MONDAY, actual, schedule_map)

    # Second pair falls to the afternoon slot: late 0, undertime 15:00 - 10:00.
    assert (result.late, result.undertime) == (30, 60 + 300)


def test_factory_resolves_strategy_names():
    factory = SlotMatchingFactory()

    assert isinstance(factory.for_name("overlap"), OverlapMatchingStrategy)
    assert factory.for_name(None).name == "ordinal"
    with pytest.raises(ValueError):
        factory.for_name("nearest")
