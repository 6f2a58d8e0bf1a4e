from __future__ import annotations

import pytest

from dtr_system.attendance.service import DTRService
from dtr_system.core.exceptions import NotFoundError
from dtr_system.totals.service import MonthlyReportService


@pytest.fixture
def services(dtr_repo, schedule_repo, fixed_now):
    return DTRService(dtr_repo, schedule_repo, clock=fixed_now), MonthlyReportService(dtr_repo)


def test_report_separates_logged_and_counted_hours(services, office_actor):
    dtrs, reports = services
    record = dtrs.get_or_create(user_id=1, month=3, year=2025)
    dtrs.edit_entry(dtr_id=record.dtr_id, day=3, fields={"in1": "07:00", "out1": "13:00"})
    dtrs.edit_entry(dtr_id=record.dtr_id, day=4, fields={"in1": "08:00", "out1": "09:30"})
    dtrs.confirm_entry(dtr_id=record.dtr_id, day=3, actor=office_actor)
    dtrs.mark_absent(dtr_id=record.dtr_id, day=5, actor=office_actor)

    data = reports.build_monthly_report(dtr_id=record.dtr_id)

    assert len(data.rows) == 31
    day3 = data.rows[2]
    assert day3["date"] == "2025-03-03"
    assert day3["shifts"] == "07:00-13:00"
    assert (day3["logged_hours"], day3["counted_hours"]) == ("06:00", "05:00")
    assert data.summary["logged_hours"] == "07:30"
    assert data.summary["counted_hours"] == "05:00"
    assert data.summary["confirmed_days"] == 2
    assert data.summary["absent_days"] == 1


def test_user_stats_count_by_status(services, office_actor):
    dtrs, reports = services
    march = dtrs.get_or_create(user_id=1, month=3, year=2025)
    dtrs.get_or_create(user_id=1, month=4, year=2025)
    dtrs.edit_entry(dtr_id=march.dtr_id, day=4, fields={"in1": "08:00", "out1": "10:00"})
    dtrs.confirm_entry(dtr_id=march.dtr_id, day=4, actor=office_actor)
    dtrs.submit(dtr_id=march.dtr_id)

    stats = reports.user_stats(user_id=1)

    assert stats["total_dtrs"] == 2
    assert stats["submitted"] == 1
    assert stats["draft"] == 1
    assert stats["total_minutes"] == 120
    assert stats["total_hours"] == "02:00"


def test_report_for_unknown_record(services):
    _, reports = services

    with pytest.raises(NotFoundError):
        reports.build_monthly_report(dtr_id=77)
