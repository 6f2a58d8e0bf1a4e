from __future__ import annotations

import json
from typing import Optional

from ..core.enums import OwnerType
from ..core.exceptions import StaleRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, load_json
from .model import ClassScheduleEntry, DutyHourWindow, ScheduleDocument
from .repository import ScheduleRepository

_COLUMNS = """
    schedule_id, user_id, owner_type, application_id, scholar_id, office_id,
    class_schedule_data, duty_hours, last_modified_by, last_modified_at, version
"""


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_document(r: dict) -> ScheduleDocument:
        return ScheduleDocument(
            schedule_id=int(r["schedule_id"]),
            user_id=int(r["user_id"]),
            owner_type=OwnerType(r["owner_type"]),
            application_id=r.get("application_id"),
            scholar_id=r.get("scholar_id"),
            office_id=r.get("office_id"),
            class_entries=[ClassScheduleEntry.from_dict(c) for c in load_json(r.get("class_schedule_data"), [])],
            duty_windows=[DutyHourWindow.from_dict(d) for d in load_json(r.get("duty_hours"), [])],
            last_modified_by=r.get("last_modified_by"),
            last_modified_at=r.get("last_modified_at"),
            version=int(r.get("version") or 0),
        )

    def get_by_id(self, schedule_id: int) -> Optional[ScheduleDocument]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return self._to_document(r) if r else None

    def resolve(self, user_id: int) -> Optional[ScheduleDocument]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM schedules
                WHERE user_id=%s
                ORDER BY (owner_type='scholar') DESC, schedule_id DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return self._to_document(r) if r else None

    def save(self, document: ScheduleDocument) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedules
                SET duty_hours=%s, last_modified_by=%s, last_modified_at=%s, version=version+1
                WHERE schedule_id=%s AND version=%s
                """,
                (
                    json.dumps([w.to_dict() for w in document.duty_windows]),
                    document.last_modified_by,
                    document.last_modified_at,
                    int(document.schedule_id),
                    int(document.version),
                ),
            )
            if cur.rowcount == 0:
                raise StaleRecordError("Schedule was changed by someone else, reload and try again")
        document.version += 1
