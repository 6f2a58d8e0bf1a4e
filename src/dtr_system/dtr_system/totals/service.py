from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import DTRRepository
from ..common.datetime_utils import format_minutes
from ..core.constants import STATUS_ABSENT
from ..core.enums import RecordStatus
from ..core.exceptions import NotFoundError
from .calculator.base import MonthlyTotalCalculator
from .calculator.capped_calculator import CappedConfirmedCalculator


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


class MonthlyReportService:
    """Read-side summaries of DTRs (per-day rows and per-user statistics)."""

    def __init__(
        self,
        dtrs: DTRRepository,
        *,
        calculator: Optional[MonthlyTotalCalculator] = None,
    ):
        self._dtrs = dtrs
        self._calculator = calculator or CappedConfirmedCalculator()

    def build_monthly_report(self, *, dtr_id: int) -> ReportData:
        record = self._dtrs.get_by_id(int(dtr_id))
        if not record:
            raise NotFoundError("DTR not found")
        return self.report_for(record)

    def report_for(self, record: AttendanceRecord) -> ReportData:
        rows: list[dict] = []
        logged = counted = late = undertime = 0
        confirmed_days = excused_days = absent_days = 0

        for e in record.entries:
            minutes = self._calculator.counted_minutes(e)
            rows.append(
                {
                    "day": e.day,
                    "date": date(record.year, record.month, e.day).strftime("%Y-%m-%d"),
                    "shifts": ", ".join(f"{p.time_in or '-'}-{p.time_out or '-'}" for p in e.shifts if not p.is_empty),
                    "late": e.late,
                    "undertime": e.undertime,
                    "logged_hours": format_minutes(e.total_minutes),
                    "counted_hours": format_minutes(minutes),
                    "confirmation": e.confirmation_status.value,
                    "status": e.status or "-",
                }
            )
            logged += int(e.total_minutes or 0)
            counted += minutes
            late += int(e.late or 0)
            undertime += int(e.undertime or 0)
            confirmed_days += 1 if e.is_confirmed else 0
            excused_days += 1 if e.is_excused else 0
            absent_days += 1 if e.status == STATUS_ABSENT else 0

        summary = {
            "user_id": record.user_id,
            "month": record.month,
            "year": record.year,
            "status": record.status.value,
            "logged_hours": format_minutes(logged),
            "counted_hours": format_minutes(counted),
            "late_minutes": late,
            "undertime_minutes": undertime,
            "confirmed_days": confirmed_days,
            "excused_days": excused_days,
            "absent_days": absent_days,
        }
        return ReportData(rows=rows, summary=summary)

    def user_stats(self, *, user_id: int) -> dict:
        records = self._dtrs.list_for_user(int(user_id))
        stats = {
            "total_dtrs": len(records),
            "total_minutes": 0,
            RecordStatus.DRAFT.value: 0,
            RecordStatus.SUBMITTED.value: 0,
            RecordStatus.APPROVED.value: 0,
            RecordStatus.REJECTED.value: 0,
        }
        for r in records:
            stats["total_minutes"] += int(r.total_monthly_minutes or 0)
            stats[r.status.value] += 1
        stats["total_hours"] = format_minutes(stats["total_minutes"])
        return stats
