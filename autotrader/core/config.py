"""
Load configuration from config.yaml and .env. API keys only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from autotrader.utils.timeframes import timeframe_minutes


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    # Env overrides (for secrets and overrides)
    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    api = data.get("api", {})
    strategy = data.get("strategy", {})
    risk = data.get("risk", {})
    schedule = data.get("schedule", {})
    switch = data.get("switch", {})
    logging_cfg = data.get("logging", {})
    backtest = data.get("backtest", {})

    candle_interval = env("CANDLE_INTERVAL", strategy.get("candle_interval", "1m"))
    # Raises ValueError for bars OKX does not know (e.g. "1x")
    timeframe_minutes(candle_interval)

    switch_path = Path(env("SWITCH_PATH", str(switch.get("path", "data/switches.yaml"))))
    if not switch_path.is_absolute():
        switch_path = root / switch_path

    return Config(
        # API (env only; never put keys in config.yaml)
        okx_api_key=env("OKX_API_KEY"),
        okx_api_secret=env("OKX_API_SECRET"),
        okx_api_passphrase=env("OKX_API_PASSPHRASE"),
        use_demo=env_bool("OKX_USE_DEMO", api.get("use_demo", False)),
        base_url=env("OKX_BASE_URL", api.get("base_url", "https://www.okx.com")),
        request_timeout=env_float("REQUEST_TIMEOUT", api.get("timeout_sec", 10.0)),
        # Strategy
        symbol=env("SYMBOL", strategy.get("symbol", "SOL-USDT")).upper(),
        candle_interval=candle_interval,
        candle_count=env_int("CANDLE_COUNT", strategy.get("candle_count", 100)),
        rsi_len=env_int("RSI_LEN", strategy.get("rsi_len", 14)),
        ema_fast=env_int("EMA_FAST", strategy.get("ema_fast", 5)),
        ema_slow=env_int("EMA_SLOW", strategy.get("ema_slow", 20)),
        atr_len=env_int("ATR_LEN", strategy.get("atr_len", 14)),
        rsi_oversold=env_float("RSI_OVERSOLD", strategy.get("rsi_oversold", 30.0)),
        rsi_overbought=env_float("RSI_OVERBOUGHT", strategy.get("rsi_overbought", 70.0)),
        min_history=env_int("MIN_HISTORY", strategy.get("min_history", 50)),
        min_agreement=env_float("MIN_AGREEMENT", strategy.get("min_agreement", 0.6)),
        # Risk
        position_fraction=env_float("POSITION_FRACTION", risk.get("position_fraction", 0.3)),
        scale_in_factor=env_float("SCALE_IN_FACTOR", risk.get("scale_in_factor", 0.5)),
        scale_in_trigger_pct=env_float("SCALE_IN_TRIGGER_PCT", risk.get("scale_in_trigger_pct", 2.0)),
        max_positions=env_int("MAX_POSITIONS", risk.get("max_positions", 3)),
        max_consecutive_trades=env_int("MAX_CONSECUTIVE_TRADES", risk.get("max_consecutive_trades", 3)),
        min_signal_confidence=env_float("MIN_SIGNAL_CONFIDENCE", risk.get("min_signal_confidence", 60.0)),
        min_order_value=env_float("MIN_ORDER_VALUE", risk.get("min_order_value", 0.14)),
        stop_atr_mult=env_float("STOP_ATR_MULT", risk.get("stop_atr_mult", 2.0)),
        tp_atr_mult=env_float("TP_ATR_MULT", risk.get("tp_atr_mult", 3.0)),
        # Schedule
        cycle_interval_sec=env_float("CYCLE_INTERVAL_SEC", schedule.get("cycle_interval_sec", 60.0)),
        enable_time_filter=env_bool("ENABLE_TIME_FILTER", schedule.get("enable_time_filter", True)),
        trading_start_hour=env_int("TRADING_START_HOUR", schedule.get("trading_start_hour", 2)),
        trading_end_hour=env_int("TRADING_END_HOUR", schedule.get("trading_end_hour", 22)),
        skip_weekends=env_bool("SKIP_WEEKENDS", schedule.get("skip_weekends", True)),
        # Switch
        switch_path=switch_path,
        switch_name=env("SWITCH_NAME", switch.get("name", "auto_trading")),
        unknown_as_disabled=env_bool("UNKNOWN_AS_DISABLED", switch.get("unknown_as_disabled", True)),
        # Telegram (env only)
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=env("TELEGRAM_CHAT_ID"),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(env("LOG_DIR", logging_cfg.get("dir", "logs"))),
        log_file=env("LOG_FILE", logging_cfg.get("file", "autotrader.log")),
        # Backtest
        backtest_initial_balance=env_float("BACKTEST_INITIAL_BALANCE", backtest.get("initial_balance", 1000.0)),
        backtest_csv_path=env("BACKTEST_CSV", backtest.get("csv_path", "")) or None,
    )


class Config:
    """Application config. All fields have defaults so it can be built in code."""

    def __init__(
        self,
        okx_api_key: str = "",
        okx_api_secret: str = "",
        okx_api_passphrase: str = "",
        use_demo: bool = False,
        base_url: str = "https://www.okx.com",
        request_timeout: float = 10.0,
        symbol: str = "SOL-USDT",
        candle_interval: str = "1m",
        candle_count: int = 100,
        rsi_len: int = 14,
        ema_fast: int = 5,
        ema_slow: int = 20,
        atr_len: int = 14,
        rsi_oversold: float = 30.0,
        rsi_overbought: float = 70.0,
        min_history: int = 50,
        min_agreement: float = 0.6,
        position_fraction: float = 0.3,
        scale_in_factor: float = 0.5,
        scale_in_trigger_pct: float = 2.0,
        max_positions: int = 3,
        max_consecutive_trades: int = 3,
        min_signal_confidence: float = 60.0,
        min_order_value: float = 0.14,
        stop_atr_mult: float = 2.0,
        tp_atr_mult: float = 3.0,
        cycle_interval_sec: float = 60.0,
        enable_time_filter: bool = True,
        trading_start_hour: int = 2,
        trading_end_hour: int = 22,
        skip_weekends: bool = True,
        switch_path: Optional[Path] = None,
        switch_name: str = "auto_trading",
        unknown_as_disabled: bool = True,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        log_file: str = "autotrader.log",
        backtest_initial_balance: float = 1000.0,
        backtest_csv_path: Optional[str] = None,
    ):
        self.okx_api_key = okx_api_key
        self.okx_api_secret = okx_api_secret
        self.okx_api_passphrase = okx_api_passphrase
        self.use_demo = use_demo
        self.base_url = base_url
        self.request_timeout = request_timeout
        self.symbol = symbol
        self.candle_interval = candle_interval
        self.candle_count = candle_count
        self.rsi_len = rsi_len
        self.ema_fast = ema_fast
        self.ema_slow = ema_slow
        self.atr_len = atr_len
        self.rsi_oversold = rsi_oversold
        self.rsi_overbought = rsi_overbought
        self.min_history = min_history
        self.min_agreement = min_agreement
        self.position_fraction = position_fraction
        self.scale_in_factor = scale_in_factor
        self.scale_in_trigger_pct = scale_in_trigger_pct
        self.max_positions = max_positions
        self.max_consecutive_trades = max_consecutive_trades
        self.min_signal_confidence = min_signal_confidence
        self.min_order_value = min_order_value
        self.stop_atr_mult = stop_atr_mult
        self.tp_atr_mult = tp_atr_mult
        self.cycle_interval_sec = cycle_interval_sec
        self.enable_time_filter = enable_time_filter
        self.trading_start_hour = trading_start_hour
        self.trading_end_hour = trading_end_hour
        self.skip_weekends = skip_weekends
        self.switch_path = Path(switch_path) if switch_path else Path("data/switches.yaml")
        self.switch_name = switch_name
        self.unknown_as_disabled = unknown_as_disabled
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.backtest_initial_balance = backtest_initial_balance
        self.backtest_csv_path = backtest_csv_path

    @property
    def base_asset(self) -> str:
        return self.symbol.split("-")[0]

    @property
    def quote_asset(self) -> str:
        parts = self.symbol.split("-")
        return parts[1] if len(parts) > 1 else "USDT"

    @property
    def has_credentials(self) -> bool:
        return bool(self.okx_api_key and self.okx_api_secret and self.okx_api_passphrase)
