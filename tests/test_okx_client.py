"""OKX client tests against a fake HTTP session."""

import base64
import hashlib
import hmac
import json
from datetime import datetime, timezone

import pytest
import requests

from autotrader.core.types import Direction
from autotrader.execution.base import ExchangeError, ExchangeErrorKind
from autotrader.execution.okx import OkxSpotClient, okx_timestamp, sign


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Pops scripted responses (or exceptions) and records each call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, data=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "data": data, "headers": headers or {}})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("autotrader.execution.okx.time.sleep", lambda s: None)


def _client(session, **kwargs):
    kwargs.setdefault("api_key", "key")
    kwargs.setdefault("api_secret", "secret")
    kwargs.setdefault("passphrase", "pass")
    return OkxSpotClient(requests_per_second=0, session=session, **kwargs)


def test_sign_matches_hmac():
    expected = base64.b64encode(
        hmac.new(b"secret", b"2020-12-08T09:08:57.715ZGET/api/v5/account/balance", hashlib.sha256).digest()
    ).decode()
    assert sign("secret", "2020-12-08T09:08:57.715Z", "get", "/api/v5/account/balance") == expected


def test_okx_timestamp_format():
    now = datetime(2020, 12, 8, 9, 8, 57, 715000, tzinfo=timezone.utc)
    assert okx_timestamp(now) == "2020-12-08T09:08:57.715Z"


def test_get_price():
    session = FakeSession(FakeResponse(payload={"code": "0", "data": [{"last": "153.37"}]}))
    assert _client(session).get_price("SOL-USDT") == 153.37
    assert session.calls[0]["url"].endswith("/api/v5/market/ticker?instId=SOL-USDT")


def test_get_candles_oldest_first():
    rows = [
        ["1700000120000", "3", "4", "2", "3.5", "10"],
        ["1700000060000", "2", "3", "1", "2.5", "10"],
        ["1700000000000", "1", "2", "0.5", "1.5", "10"],
    ]
    session = FakeSession(FakeResponse(payload={"code": "0", "data": rows}))
    candles = _client(session).get_candles("SOL-USDT", 500, "1m")
    assert [c.timestamp for c in candles] == [1700000000000, 1700000060000, 1700000120000]
    assert candles[-1].close == 3.5
    assert "limit=300" in session.calls[0]["url"]


def test_error_code_is_bad_response():
    session = FakeSession(FakeResponse(payload={"code": "51001", "msg": "Instrument ID does not exist", "data": []}))
    with pytest.raises(ExchangeError) as exc:
        _client(session).get_price("NOPE-USDT")
    assert exc.value.kind is ExchangeErrorKind.BAD_RESPONSE
    assert len(session.calls) == 1


def test_invalid_json_is_bad_response():
    session = FakeSession(FakeResponse(payload=None, text="<html>"))
    with pytest.raises(ExchangeError) as exc:
        _client(session).get_price("SOL-USDT")
    assert exc.value.kind is ExchangeErrorKind.BAD_RESPONSE


def test_rate_limit_is_retried():
    session = FakeSession(
        FakeResponse(status_code=429, payload={}, text="Too Many Requests"),
        FakeResponse(payload={"code": "0", "data": [{"last": "10"}]}),
    )
    assert _client(session).get_price("SOL-USDT") == 10.0
    assert len(session.calls) == 2


def test_timeout_gives_up_after_retries():
    session = FakeSession(requests.Timeout("slow"))
    with pytest.raises(ExchangeError) as exc:
        _client(session).get_price("SOL-USDT")
    assert exc.value.kind is ExchangeErrorKind.TIMEOUT
    assert len(session.calls) == 3


def test_forbidden_is_auth_and_not_retried():
    session = FakeSession(FakeResponse(status_code=403, payload={}, text="IP not whitelisted"))
    with pytest.raises(ExchangeError) as exc:
        _client(session).get_price("SOL-USDT")
    assert exc.value.kind is ExchangeErrorKind.AUTH
    assert exc.value.status_code == 403
    assert len(session.calls) == 1


def test_balances_require_credentials():
    session = FakeSession(FakeResponse(payload={"code": "0", "data": []}))
    client = _client(session, api_key="", api_secret="", passphrase="")
    with pytest.raises(ExchangeError) as exc:
        client.get_balances()
    assert exc.value.kind is ExchangeErrorKind.AUTH
    assert session.calls == []


def test_get_balances_signed():
    payload = {"code": "0", "data": [{"details": [
        {"ccy": "USDT", "availBal": "250.5", "eq": "300"},
        {"ccy": "SOL", "availBal": "", "eq": "1.2"},
    ]}]}
    session = FakeSession(FakeResponse(payload=payload))
    balances = _client(session, use_demo=True).get_balances()
    assert balances["USDT"] == {"available": 250.5, "equity": 300.0}
    assert balances["SOL"]["available"] == 0.0
    headers = session.calls[0]["headers"]
    assert headers["OK-ACCESS-KEY"] == "key"
    assert headers["x-simulated-trading"] == "1"
    assert "OK-ACCESS-SIGN" in headers


def _order_client(session):
    client = _client(session)
    client._instrument_cache["SOL-USDT"] = {"minSz": "0.01", "lotSz": "0.001", "tickSz": "0.01"}
    return client


def test_market_order_success():
    session = FakeSession(FakeResponse(payload={"code": "0", "data": [{"ordId": "123", "sCode": "0"}]}))
    result = _order_client(session).place_market_order(Direction.BUY, 1.23456, "SOL-USDT")
    assert result.success is True
    assert result.order_id == "123"
    assert result.quantity == pytest.approx(1.234)
    body = json.loads(session.calls[0]["data"])
    assert body == {
        "instId": "SOL-USDT", "tdMode": "cash", "side": "buy",
        "ordType": "market", "tgtCcy": "base_ccy", "sz": "1.234",
    }


def test_market_order_rejected():
    payload = {"code": "1", "msg": "All operations failed", "data": [{"sCode": "51008", "sMsg": "Insufficient balance"}]}
    session = FakeSession(FakeResponse(payload=payload))
    result = _order_client(session).place_market_order(Direction.SELL, 2.0, "SOL-USDT")
    assert result.success is False
    assert result.message == "Insufficient balance"


def test_market_order_timeout_not_resent():
    session = FakeSession(
        requests.Timeout("read timed out"),
        FakeResponse(payload={"code": "0", "data": [{"ordId": "123", "sCode": "0"}]}),
    )
    result = _order_client(session).place_market_order(Direction.BUY, 1.0, "SOL-USDT")
    assert result.success is False
    assert "timeout" in result.message
    assert len(session.calls) == 1


def test_market_order_server_error_not_resent():
    session = FakeSession(FakeResponse(status_code=502, payload={}, text="Bad Gateway"))
    result = _order_client(session).place_market_order(Direction.SELL, 1.0, "SOL-USDT")
    assert result.success is False
    assert len(session.calls) == 1


def test_market_order_rate_limit_resent():
    session = FakeSession(
        FakeResponse(status_code=429, payload={}, text="Too Many Requests"),
        FakeResponse(payload={"code": "0", "data": [{"ordId": "124", "sCode": "0"}]}),
    )
    result = _order_client(session).place_market_order(Direction.BUY, 1.0, "SOL-USDT")
    assert result.success is True
    assert result.order_id == "124"
    assert len(session.calls) == 2


def test_market_order_below_minimum_not_sent():
    session = FakeSession(FakeResponse(payload={"code": "0", "data": []}))
    result = _order_client(session).place_market_order(Direction.BUY, 0.005, "SOL-USDT")
    assert result.success is False
    assert session.calls == []
