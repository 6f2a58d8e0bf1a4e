from __future__ import annotations

import copy
from datetime import datetime
from typing import Optional

import pytest

from dtr_system.attendance.model import AttendanceRecord
from dtr_system.core.enums import OwnerType, Role
from dtr_system.core.exceptions import ConflictError, StaleRecordError
from dtr_system.schedules.model import ClassScheduleEntry, ScheduleDocument
from dtr_system.users.model import Actor

FIXED_NOW = datetime(2025, 3, 3, 9, 30)


class InMemoryDTRs:
    """Stores deep copies so callers only see what was saved."""

    def __init__(self):
        self._rows: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, dtr_id: int) -> Optional[AttendanceRecord]:
        r = self._rows.get(dtr_id)
        return copy.deepcopy(r) if r else None

    def get_for_period(self, user_id: int, month: int, year: int) -> Optional[AttendanceRecord]:
        for r in self._rows.values():
            if (r.user_id, r.month, r.year) == (user_id, month, year):
                return copy.deepcopy(r)
        return None

    def list_for_user(self, user_id: int):
        return [copy.deepcopy(r) for r in self._rows.values() if r.user_id == user_id]

    def list_by_status(self, statuses, *, month=None, year=None):
        return [
            copy.deepcopy(r)
            for r in self._rows.values()
            if r.status in statuses and (month is None or r.month == month) and (year is None or r.year == year)
        ]

    def create(self, record: AttendanceRecord) -> int:
        if self.get_for_period(record.user_id, record.month, record.year):
            raise ConflictError("DTR already exists for this month and year")
        self._id += 1
        record.dtr_id = self._id
        self._rows[self._id] = copy.deepcopy(record)
        return self._id

    def save(self, record: AttendanceRecord) -> None:
        stored = self._rows[record.dtr_id]
        if stored.version != record.version:
            raise StaleRecordError("DTR was changed by someone else, reload and try again")
        record.version += 1
        self._rows[record.dtr_id] = copy.deepcopy(record)

    def delete(self, dtr_id: int) -> bool:
        return self._rows.pop(dtr_id, None) is not None

    def count(self) -> int:
        return len(self._rows)


class InMemorySchedules:
    def __init__(self, *docs: ScheduleDocument):
        self._docs = {d.schedule_id: copy.deepcopy(d) for d in docs}

    def get_by_id(self, schedule_id: int) -> Optional[ScheduleDocument]:
        d = self._docs.get(schedule_id)
        return copy.deepcopy(d) if d else None

    def resolve(self, user_id: int) -> Optional[ScheduleDocument]:
        docs = [d for d in self._docs.values() if d.user_id == user_id]
        docs.sort(key=lambda d: (d.owner_type == OwnerType.SCHOLAR, d.schedule_id), reverse=True)
        return copy.deepcopy(docs[0]) if docs else None

    def save(self, document: ScheduleDocument) -> None:
        if self._docs[document.schedule_id].version != document.version:
            raise StaleRecordError("Schedule was changed by someone else, reload and try again")
        document.version += 1
        self._docs[document.schedule_id] = copy.deepcopy(document)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def office_actor():
    return Actor(user_id=900, role=Role.OFFICE, display_name="Library Staff", office_id=7)


@pytest.fixture
def trainee_schedule():
    """Trainee 1: Monday/Wednesday class 07:00-08:30, deployed to office 7."""
    return ScheduleDocument(
        schedule_id=10,
        user_id=1,
        owner_type=OwnerType.TRAINEE,
        application_id=55,
        office_id=7,
        class_entries=[
            ClassScheduleEntry(subject_code="IT101", subject_name="Intro to Computing", schedule="MW 7:00-8:30 AM"),
        ],
    )


@pytest.fixture
def dtr_repo():
    return InMemoryDTRs()


@pytest.fixture
def schedule_repo(trainee_schedule):
    return InMemorySchedules(trainee_schedule)


@pytest.fixture
def make_schedule_repo():
    return InMemorySchedules
