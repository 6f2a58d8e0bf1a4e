from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RecordStatus
from .model import AttendanceRecord


class DTRRepository(Protocol):
    def get_by_id(self, dtr_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_period(self, user_id: int, month: int, year: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_status(
        self,
        statuses: Sequence[RecordStatus],
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert a new record and return its id.

        Raises ConflictError when the (user_id, month, year) period already exists.
        """

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> None:
        """Raises StaleRecordError if the stored version is not record.version."""

        raise NotImplementedError

    def delete(self, dtr_id: int) -> bool:
        raise NotImplementedError
