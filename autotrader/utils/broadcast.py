"""In-process fan-out of status events to subscribers."""

from __future__ import annotations
import logging
import threading
from collections import deque
from typing import Callable, Deque, List

from autotrader.core.types import StatusEvent

logger = logging.getLogger("autotrader.utils.broadcast")

Subscriber = Callable[[StatusEvent], None]


class StatusPublisher:
    """
    Fire-and-forget publisher. publish() never raises and never waits for
    subscribers to exist; a subscriber that raises is logged and skipped.
    """

    def __init__(self, history_size: int = 100):
        self._subscribers: List[Subscriber] = []
        self._history: Deque[StatusEvent] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Add a subscriber. Returns a callable that removes it."""
        with self._lock:
            self._subscribers.append(fn)

        def unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return unsubscribe

    @property
    def history(self) -> List[StatusEvent]:
        with self._lock:
            return list(self._history)

    def publish(self, event: StatusEvent) -> None:
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)
        for fn in subscribers:
            try:
                fn(event)
            except Exception as e:
                logger.warning("Status subscriber %r failed: %s", fn, e)
