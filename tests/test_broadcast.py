"""StatusPublisher, StatusEvent and TelegramSink tests."""

from datetime import datetime, timezone

from autotrader.core.types import StatusEvent
from autotrader.utils import telegram
from autotrader.utils.broadcast import StatusPublisher
from autotrader.utils.telegram import TelegramSink, format_event, send_telegram

T0 = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def test_status_event_dict():
    event = StatusEvent("Position closed", "profit", T0, {"pnl": 1.5})
    assert event.to_dict() == {
        "type": "trading_log",
        "data": {
            "message": "Position closed",
            "type": "profit",
            "timestamp": "2024-01-10T12:00:00+00:00",
            "pnl": 1.5,
        },
    }


def test_publish_without_subscribers():
    pub = StatusPublisher(history_size=2)
    for i in range(3):
        pub.publish(StatusEvent(f"m{i}"))
    assert [e.message for e in pub.history] == ["m1", "m2"]


def test_failing_subscriber_does_not_block_others():
    pub = StatusPublisher()
    seen = []

    def broken(event):
        raise RuntimeError("subscriber down")

    pub.subscribe(broken)
    unsubscribe = pub.subscribe(seen.append)
    pub.publish(StatusEvent("one"))
    unsubscribe()
    pub.publish(StatusEvent("two"))
    assert [e.message for e in seen] == ["one"]


def test_format_event():
    text = format_event(StatusEvent("New position BUY opened", "trade", T0, {"size": 1.2}))
    assert text == "[trade] New position BUY opened\nsize: 1.2"


def test_send_telegram_not_configured(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not post")

    monkeypatch.setattr(telegram.requests, "post", fail)
    assert send_telegram("hello") is False


def test_sink_filters_and_delivers(monkeypatch):
    sent = []
    monkeypatch.setattr(telegram, "send_telegram", lambda text, token, chat: sent.append(text) or True)

    sink = TelegramSink("token", "chat").start()
    sink(StatusEvent("=== AUTO-TRADE CYCLE START ===", "info", T0))
    sink(StatusEvent("Position closed: Take Profit", "profit", T0))
    sink.stop()
    assert sent == ["[profit] Position closed: Take Profit"]


def test_sink_disabled_without_credentials():
    sink = TelegramSink("", "")
    assert sink.enabled is False
    sink.start()
    sink(StatusEvent("x", "trade", T0))
    assert sink._queue.empty()
