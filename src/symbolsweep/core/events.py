"""In-process publish/subscribe for status and settings changes."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)

CACHE_STATUS_UPDATE = "cache-status-update"
SETTINGS_UPDATED = "settings-updated"
CACHE_STATE_CHANGED = "cache-state-changed"
CLEAN_COMPLETED = "clean-completed"
AUTO_CLEAN_TRIGGERED = "auto-clean-triggered"
AUTO_CLEAN_FAILED = "auto-clean-failed"

Subscriber = Callable[[Any], None]


class EventBus:
    """Fans events out to any number of subscribers.

    Delivery is synchronous on the publishing thread and best-effort:
    nothing is stored, so a late subscriber only sees later events.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscriber]] = {}

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for *topic*; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        """Deliver *payload* to every current subscriber of *topic*."""
        with self._lock:
            callbacks = list(self._subscribers.get(topic, ()))
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                log.exception("Subscriber for '%s' failed", topic)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))
