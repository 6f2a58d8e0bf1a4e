from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import SlotMatchingFactory
from .attendance.mysql_attendance_repository import MySQLDTRRepository
from .attendance.reconcile import Reconciler
from .attendance.repository import DTRRepository
from .attendance.service import DTRService
from .core.constants import DAILY_CAP_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import LogNotifier, Notifier
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import DutyHourService
from .totals.calculator.capped_calculator import CappedConfirmedCalculator
from .totals.service import MonthlyReportService


@dataclass(frozen=True)
class Container:
    dtrs_repo: DTRRepository
    schedules_repo: ScheduleRepository

    dtr_service: DTRService
    duty_hour_service: DutyHourService
    report_service: MonthlyReportService

    conn: Optional[DatabaseConnection] = None


def wire_services(
    *,
    dtrs_repo: DTRRepository,
    schedules_repo: ScheduleRepository,
    conn: Optional[DatabaseConnection] = None,
    daily_cap_minutes: int = DAILY_CAP_MINUTES,
    matching: str = "ordinal",
    notifier: Optional[Notifier] = None,
) -> Container:
    """Build services over any repository implementation (MySQL or in-memory)."""
    calculator = CappedConfirmedCalculator(cap_minutes=daily_cap_minutes)
    reconciler = Reconciler(SlotMatchingFactory().for_name(matching))

    dtr_service = DTRService(
        dtrs_repo,
        schedules_repo,
        calculator=calculator,
        reconciler=reconciler,
        notifier=notifier or LogNotifier(),
    )
    duty_hour_service = DutyHourService(schedules_repo)
    report_service = MonthlyReportService(dtrs_repo, calculator=calculator)

    return Container(
        dtrs_repo=dtrs_repo,
        schedules_repo=schedules_repo,
        dtr_service=dtr_service,
        duty_hour_service=duty_hour_service,
        report_service=report_service,
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    daily_cap_minutes: int = DAILY_CAP_MINUTES,
    matching: str = "ordinal",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        dtrs_repo=MySQLDTRRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        conn=conn,
        daily_cap_minutes=daily_cap_minutes,
        matching=matching,
    )
