"""
OKX v5 spot REST client with request signing, throttling and retry.
"""

from __future__ import annotations
import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional

import requests

from autotrader.core.types import Candle, Direction
from autotrader.execution.base import ExchangeError, ExchangeErrorKind, ExecutionClient, OrderResult
from autotrader.utils.exchange_filters import format_size, parse_instrument_filters, round_quantity

logger = logging.getLogger("autotrader.execution.okx")

OKX_BASE_URL = "https://www.okx.com"
MAX_CANDLES = 300


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0, rate_limit_only: bool = False):
    """
    Decorator: retry retryable ExchangeErrors. Backoff doubles on rate limits.
    With rate_limit_only, timeouts and network errors are raised at once.
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except ExchangeError as e:
                    if not e.retryable or attempt >= max_retries - 1:
                        raise
                    if rate_limit_only and e.kind is not ExchangeErrorKind.RATE_LIMITED:
                        raise
                    if e.kind is ExchangeErrorKind.RATE_LIMITED:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                    else:
                        delay = base_delay
                        logger.warning("%s failed (%s), retry in %.1fs (attempt %d)", f.__name__, e, delay, attempt + 1)
                    time.sleep(delay)
        return wrapped
    return decorator


def sign(secret: str, timestamp: str, method: str, request_path: str, body: str = "") -> str:
    """base64(HMAC-SHA256(secret, timestamp + METHOD + path + body))."""
    message = f"{timestamp}{method.upper()}{request_path}{body}"
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def okx_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2020-12-08T09:08:57.715Z."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class OkxSpotClient(ExecutionClient):
    """OKX spot client (live or demo trading)."""

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        passphrase: str = "",
        use_demo: bool = False,
        base_url: str = OKX_BASE_URL,
        timeout: float = 10.0,
        order_timeout: float = 15.0,
        requests_per_second: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._passphrase = passphrase
        self._use_demo = use_demo
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._order_timeout = order_timeout
        self._min_interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._last_request = 0.0
        self._session = session or requests.Session()
        self._instrument_cache: Dict[str, Optional[dict]] = {}
        if use_demo:
            logger.info("OKX: using DEMO trading")
        else:
            logger.info("OKX: using LIVE trading")

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key and self._api_secret and self._passphrase)

    def _throttle(self) -> None:
        wait = self._min_interval - (time.monotonic() - self._last_request)
        if wait > 0:
            time.sleep(wait)
        self._last_request = time.monotonic()

    def _headers(self, method: str, request_path: str, body: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._use_demo:
            headers["x-simulated-trading"] = "1"
        ts = okx_timestamp()
        headers.update({
            "OK-ACCESS-KEY": self._api_key,
            "OK-ACCESS-SIGN": sign(self._api_secret, ts, method, request_path, body),
            "OK-ACCESS-TIMESTAMP": ts,
            "OK-ACCESS-PASSPHRASE": self._passphrase,
        })
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        auth: bool = False,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON envelope {code, msg, data}."""
        if auth and not self.has_credentials:
            raise ExchangeError(ExchangeErrorKind.AUTH, "OKX API credentials not configured")
        request_path = path
        if params:
            request_path += "?" + "&".join(f"{k}={v}" for k, v in params.items())
        payload = json.dumps(body) if body is not None else ""
        if auth:
            headers = self._headers(method, request_path, payload)
        else:
            headers = {"x-simulated-trading": "1"} if self._use_demo else {}
        self._throttle()
        try:
            r = self._session.request(
                method,
                self._base_url + request_path,
                data=payload or None,
                headers=headers,
                timeout=timeout or self._timeout,
            )
        except requests.Timeout as e:
            raise ExchangeError(ExchangeErrorKind.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            raise ExchangeError(ExchangeErrorKind.NETWORK, str(e)) from e
        if r.status_code == 429:
            raise ExchangeError(ExchangeErrorKind.RATE_LIMITED, r.text[:200], r.status_code)
        if r.status_code in (401, 403):
            raise ExchangeError(ExchangeErrorKind.AUTH, r.text[:200], r.status_code)
        if r.status_code >= 500:
            raise ExchangeError(ExchangeErrorKind.NETWORK, r.text[:200], r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, f"invalid JSON: {r.text[:200]}", r.status_code) from e
        if not isinstance(data, dict):
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, "unexpected response shape", r.status_code)
        return data

    @staticmethod
    def _data(envelope: Dict[str, Any]) -> List[Any]:
        if str(envelope.get("code")) != "0":
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, f"OKX error {envelope.get('code')}: {envelope.get('msg')}")
        data = envelope.get("data")
        if not isinstance(data, list):
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, "missing data")
        return data

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_price(self, symbol: str) -> float:
        data = self._data(self._request("GET", "/api/v5/market/ticker", params={"instId": symbol}))
        try:
            return float(data[0]["last"])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, f"bad ticker: {data!r:.200}") from e

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_candles(self, symbol: str, count: int, interval: str) -> List[Candle]:
        params = {"instId": symbol, "bar": interval, "limit": min(count, MAX_CANDLES)}
        rows = self._data(self._request("GET", "/api/v5/market/candles", params=params))
        try:
            candles = [
                Candle(
                    timestamp=int(row[0]),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5]),
                )
                for row in rows
            ]
        except (IndexError, TypeError, ValueError) as e:
            raise ExchangeError(ExchangeErrorKind.BAD_RESPONSE, "bad candle row") from e
        # OKX returns newest first
        candles.reverse()
        logger.debug("Fetched %d candles for %s", len(candles), symbol)
        return candles

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_balances(self) -> Dict[str, Dict[str, float]]:
        data = self._data(self._request("GET", "/api/v5/account/balance", auth=True))
        details = data[0].get("details", []) if data else []
        balances: Dict[str, Dict[str, float]] = {}
        for d in details:
            ccy = d.get("ccy")
            if not ccy:
                continue
            balances[ccy] = {
                "available": float(d.get("availBal") or 0.0),
                "equity": float(d.get("eq") or 0.0),
            }
        return balances

    @retry_on_rate_limit(max_retries=2, base_delay=1.0)
    def get_instrument(self, symbol: str) -> Optional[dict]:
        if symbol not in self._instrument_cache:
            params = {"instType": "SPOT", "instId": symbol}
            data = self._data(self._request("GET", "/api/v5/public/instruments", params=params))
            self._instrument_cache[symbol] = data[0] if data else None
        return self._instrument_cache[symbol]

    def _order_size(self, size: float, symbol: str) -> str:
        try:
            inst = self.get_instrument(symbol)
        except ExchangeError as e:
            logger.warning("Instrument info unavailable for %s, using default lot step: %s", symbol, e)
            inst = None
        min_sz, lot_step, _ = parse_instrument_filters(inst)
        return format_size(round_quantity(size, min_sz, lot_step), lot_step)

    # Resent only on 429; a timed-out or 5xx order may already be filled.
    @retry_on_rate_limit(max_retries=3, base_delay=1.0, rate_limit_only=True)
    def place_market_order(self, side: Direction, size: float, symbol: str) -> OrderResult:
        sz = self._order_size(size, symbol)
        if float(sz) <= 0:
            return OrderResult(success=False, message=f"size {size} below instrument minimum")
        body = {
            "instId": symbol,
            "tdMode": "cash",
            "side": Direction(side).value,
            "ordType": "market",
            "tgtCcy": "base_ccy",
            "sz": sz,
        }
        try:
            envelope = self._request(
                "POST", "/api/v5/trade/order", body=body, auth=True, timeout=self._order_timeout
            )
        except ExchangeError as e:
            if e.kind is ExchangeErrorKind.RATE_LIMITED:
                raise
            logger.error("Order %s %s %s not confirmed (%s): %s", body["side"], sz, symbol, e.kind.value, e)
            return OrderResult(success=False, message=f"order not confirmed ({e.kind.value}): {e}")
        data = envelope.get("data") or [{}]
        first = data[0] if isinstance(data, list) and data else {}
        if str(envelope.get("code")) == "0":
            logger.info("Order placed: %s %s %s (ordId=%s)", body["side"], sz, symbol, first.get("ordId"))
            return OrderResult(success=True, order_id=first.get("ordId"), quantity=float(sz))
        message = first.get("sMsg") or envelope.get("msg") or "Unknown error"
        logger.warning("Order rejected: %s %s %s: %s", body["side"], sz, symbol, message)
        return OrderResult(success=False, message=message)
