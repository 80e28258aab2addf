"""
Change notifications for the presentation layer.

NotificationHub is a synchronous fan-out: components publish after a
state transition has been committed, subscribers receive the Notification
on the publishing context. A failing subscriber is logged and skipped so
one broken banner cannot block a mode switch.

A bounded backlog of recent notifications is kept for pollers that
prefer re-querying over callbacks.
"""

import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, List

import structlog

from parentgate.domain.models.notification import Notification, NotificationKind

log = structlog.get_logger(__name__)

Subscriber = Callable[[Notification], None]


class NotificationHub:
    """Publish/subscribe channel for mode, lockout and suggestion changes."""

    def __init__(self, backlog_size: int = 100):
        self._subscribers: List[Subscriber] = []
        self._recent: Deque[Notification] = deque(maxlen=backlog_size)
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, kind: NotificationKind, at: datetime, **payload: Any) -> Notification:
        notification = Notification(kind=kind, emitted_at=at, payload=payload)
        with self._lock:
            self._recent.append(notification)
            subscribers = list(self._subscribers)

        log.info("notification_published", kind=kind.value, **_loggable(payload))

        for callback in subscribers:
            try:
                callback(notification)
            except Exception as e:
                log.error(
                    "notification_subscriber_failed",
                    kind=kind.value,
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                    error=str(e),
                )
        return notification

    def recent(self, limit: int = 20) -> List[Notification]:
        with self._lock:
            items = list(self._recent)
        return items[-limit:]


def _loggable(payload: dict) -> dict:
    return {k: (v if isinstance(v, (str, int, float, bool)) or v is None else str(v))
            for k, v in payload.items()}
