from dtr_system.attendance.model import DayEntry
from dtr_system.core.enums import ConfirmationStatus
from dtr_system.totals.calculator.capped_calculator import CappedConfirmedCalculator


def _entry(day: int, minutes: int, confirmed: bool) -> DayEntry:
    status = ConfirmationStatus.CONFIRMED if confirmed else ConfirmationStatus.UNCONFIRMED
    return DayEntry(day=day, total_minutes=minutes, confirmation_status=status)


def test_confirmed_day_over_the_cap_counts_exactly_300():
    calc = CappedConfirmedCalculator()

    assert calc.counted_minutes(_entry(1, 480, True)) == 300
    assert calc.counted_minutes(_entry(2, 300, True)) == 300
    assert calc.counted_minutes(_entry(3, 299, True)) == 299


def test_unconfirmed_days_never_count():
    calc = CappedConfirmedCalculator()

    assert calc.counted_minutes(_entry(1, 240, False)) == 0


def test_monthly_total_sums_capped_confirmed_days():
    entries = [_entry(1, 480, True), _entry(2, 120, True), _entry(3, 600, False), _entry(4, 0, True)]

    assert CappedConfirmedCalculator().monthly_minutes(entries) == 300 + 120


def test_cap_is_configurable():
    calc = CappedConfirmedCalculator(cap_minutes=240)

    assert calc.monthly_minutes([_entry(1, 480, True), _entry(2, 200, True)]) == 440
