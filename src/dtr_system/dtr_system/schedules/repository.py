from __future__ import annotations

from typing import Optional, Protocol

from .model import ScheduleDocument


class ScheduleResolver(Protocol):
    def resolve(self, user_id: int) -> Optional[ScheduleDocument]:
        """Return whichever schedule container applies to the user.

        A scholar's container wins over a trainee application's.
        """

        raise NotImplementedError


class ScheduleRepository(ScheduleResolver, Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[ScheduleDocument]:
        raise NotImplementedError

    def save(self, document: ScheduleDocument) -> None:
        """Persist duty windows and audit stamps.

        Raises StaleRecordError if the stored version is not document.version;
        bumps document.version on success.
        """

        raise NotImplementedError
