from dtr_system.attendance.model import DayEntry, ShiftPair


def test_stored_legacy_times_are_canonicalized_on_load():
    entry = DayEntry.from_dict({"day": 1, "in1": "9:00", "out1": "10:30", "in2": "1:00 PM", "out2": "2:15 PM"})

    assert [(p.time_in, p.time_out) for p in entry.shifts] == [("09:00", "10:30"), ("13:00", "14:15")]
    assert entry.worked_minutes() == 90 + 75


def test_worked_minutes_compares_times_not_text():
    assert ShiftPair("9:00", "10:30").worked_minutes() == 90
    assert ShiftPair("10:30", "9:00").worked_minutes() == 0
    assert ShiftPair("09:00", None).worked_minutes() == 0


def test_unreadable_stored_time_is_kept_and_counts_zero():
    entry = DayEntry.from_dict({"day": 2, "shifts": [{"in": "morning", "out": "11:00"}]})

    assert entry.shifts[0].time_in == "morning"
    assert entry.worked_minutes() == 0
