from __future__ import annotations

import json
from typing import Optional, Sequence

from mysql.connector import IntegrityError, errorcode

from ..core.enums import RecordStatus
from ..core.exceptions import ConflictError, StaleRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import AttendanceRecord, DayEntry
from .repository import DTRRepository

_COLUMNS = """
    dtr_id, user_id, month, year, status, department, duty_hours, entries,
    submitted_at, checked_by, checked_at, remarks, is_final, total_monthly_minutes, version
"""


class MySQLDTRRepository(DTRRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_record(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            dtr_id=int(r["dtr_id"]),
            user_id=int(r["user_id"]),
            month=int(r["month"]),
            year=int(r["year"]),
            entries=[DayEntry.from_dict(e) for e in load_json(r.get("entries"), [])],
            status=RecordStatus(r["status"]),
            department=r.get("department"),
            duty_hours=r.get("duty_hours"),
            submitted_at=r.get("submitted_at"),
            checked_by=r.get("checked_by"),
            checked_at=r.get("checked_at"),
            remarks=r.get("remarks"),
            is_final=bool(r.get("is_final")),
            total_monthly_minutes=int(r.get("total_monthly_minutes") or 0),
            version=int(r.get("version") or 0),
        )

    @staticmethod
    def _entries_json(record: AttendanceRecord) -> str:
        return json.dumps([e.to_dict() for e in record.entries])

    def get_by_id(self, dtr_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM dtr_records WHERE dtr_id=%s", (int(dtr_id),))
            r = fetchone(cur)
            return self._to_record(r) if r else None

    def get_for_period(self, user_id: int, month: int, year: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM dtr_records WHERE user_id=%s AND month=%s AND year=%s",
                (int(user_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return self._to_record(r) if r else None

    def list_for_user(self, user_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM dtr_records
                WHERE user_id=%s
                ORDER BY year DESC, month DESC
                """,
                (int(user_id),),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def list_by_status(
        self,
        statuses: Sequence[RecordStatus],
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if not statuses:
            return []

        clauses = [f"status IN ({', '.join(['%s'] * len(statuses))})"]
        params: list[object] = [s.value for s in statuses]
        if month is not None:
            clauses.append("month=%s")
            params.append(int(month))
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM dtr_records
                WHERE {where}
                ORDER BY submitted_at DESC, dtr_id DESC
                """,
                tuple(params),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def create(self, record: AttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO dtr_records(user_id, month, year, status, entries, total_monthly_minutes, version)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.month,
                        record.year,
                        record.status.value,
                        self._entries_json(record),
                        record.total_monthly_minutes,
                        record.version,
                    ),
                )
                record.dtr_id = int(cur.lastrowid)
                return record.dtr_id
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError("DTR already exists for this month and year") from exc
            raise

    def save(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE dtr_records
                SET status=%s, department=%s, duty_hours=%s, entries=%s,
                    submitted_at=%s, checked_by=%s, checked_at=%s, remarks=%s,
                    is_final=%s, total_monthly_minutes=%s, version=version+1
                WHERE dtr_id=%s AND version=%s
                """,
                (
                    record.status.value,
                    record.department,
                    record.duty_hours,
                    self._entries_json(record),
                    record.submitted_at,
                    record.checked_by,
                    record.checked_at,
                    record.remarks,
                    1 if record.is_final else 0,
                    record.total_monthly_minutes,
                    int(record.dtr_id),
                    int(record.version),
                ),
            )
            if cur.rowcount == 0:
                raise StaleRecordError("DTR was changed by someone else, reload and try again")
        record.version += 1

    def delete(self, dtr_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM dtr_records WHERE dtr_id=%s", (int(dtr_id),))
            return cur.rowcount > 0
