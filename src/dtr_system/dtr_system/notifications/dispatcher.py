from __future__ import annotations

from typing import Optional, Protocol

from ..common.logging import get_logger

log = get_logger(__name__)


class Notifier(Protocol):
    def notify(self, event: str, payload: dict) -> None:
        raise NotImplementedError


class LogNotifier:
    """Default notifier: records the event; e-mail delivery lives outside this system."""

    def notify(self, event: str, payload: dict) -> None:
        log.info("notification", notification=event, **payload)


def dispatch_safely(notifier: Optional[Notifier], event: str, payload: dict) -> bool:
    """Best-effort delivery: a failing notifier never undoes or blocks the state change."""
    if notifier is None:
        return False
    try:
        notifier.notify(event, payload)
        return True
    except Exception:
        log.warning("notification_failed", notification=event, exc_info=True, **payload)
        return False
