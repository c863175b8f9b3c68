"""Telegram notifications. Never log token or chat_id."""

from __future__ import annotations
import logging
import queue
import threading
from typing import Iterable, Optional

import requests

from autotrader.core.types import StatusEvent

logger = logging.getLogger("autotrader.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success. Skips if not configured."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", e)
        return False


def format_event(event: StatusEvent) -> str:
    lines = [f"[{event.category}] {event.message}"]
    lines.extend(f"{k}: {v}" for k, v in event.fields.items())
    return "\n".join(lines)


class TelegramSink:
    """
    StatusPublisher subscriber that forwards selected categories to Telegram
    from a daemon thread, so publishing never blocks on the network.
    """

    DEFAULT_CATEGORIES = ("trade", "profit", "loss", "error")

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        categories: Optional[Iterable[str]] = None,
        max_queue: int = 100,
    ):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._categories = set(categories or self.DEFAULT_CATEGORIES)
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=max_queue)
        self._thread: Optional[threading.Thread] = None

    @property
    def enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def start(self) -> "TelegramSink":
        if self.enabled and self._thread is None:
            self._thread = threading.Thread(target=self._run, name="telegram-sink", daemon=True)
            self._thread.start()
        return self

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is not None:
            self._queue.put(None)
            self._thread.join(timeout)
            self._thread = None

    def __call__(self, event: StatusEvent) -> None:
        if not self.enabled or event.category not in self._categories:
            return
        try:
            self._queue.put_nowait(format_event(event))
        except queue.Full:
            logger.warning("Telegram queue full, dropping message")

    def _run(self) -> None:
        while True:
            text = self._queue.get()
            if text is None:
                break
            send_telegram(text, self._bot_token, self._chat_id)
