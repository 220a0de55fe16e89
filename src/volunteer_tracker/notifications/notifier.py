"""Outbound notification seam.

Delivery (email/SMS) lives outside this service. Callers dispatch after
their main write has committed and go through ``safe_notify`` so a failing
notifier never fails the operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, *, user_id: int, event: str, payload: Mapping[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotifier:
    """Default notifier: records the event in the application log."""

    def notify(self, *, user_id: int, event: str, payload: Mapping[str, Any]) -> None:
        logger.info("notify user=%s event=%s payload=%s", user_id, event, dict(payload))


class NullNotifier:
    def notify(self, *, user_id: int, event: str, payload: Mapping[str, Any]) -> None:
        return None


@dataclass
class RecordingNotifier:
    """Keeps events in memory; used by tests and local debugging."""

    events: list = field(default_factory=list)

    def notify(self, *, user_id: int, event: str, payload: Mapping[str, Any]) -> None:
        self.events.append((user_id, event, dict(payload)))


def safe_notify(notifier: Notifier | None, *, user_id: int, event: str, **payload: Any) -> bool:
    """Dispatch and swallow failures (logged). Returns True when delivered."""

    if notifier is None:
        return False
    try:
        notifier.notify(user_id=user_id, event=event, payload=payload)
        return True
    except Exception:
        logger.exception("notification %s for user %s failed", event, user_id)
        return False
