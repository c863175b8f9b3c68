"""load_config tests: YAML values, env overrides, defaults."""

from pathlib import Path

import pytest

from autotrader.core.config import Config, load_config

ENV_KEYS = (
    "OKX_API_KEY", "OKX_API_SECRET", "OKX_API_PASSPHRASE", "OKX_USE_DEMO", "SYMBOL",
    "MAX_POSITIONS", "MIN_SIGNAL_CONFIDENCE", "ENABLE_TIME_FILTER", "SWITCH_PATH",
    "SWITCH_NAME", "UNKNOWN_AS_DISABLED", "CANDLE_INTERVAL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_file(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert cfg.symbol == "SOL-USDT"
    assert cfg.max_positions == 3
    assert cfg.min_signal_confidence == 60.0
    assert cfg.unknown_as_disabled is True
    assert cfg.switch_path == tmp_path / "data" / "switches.yaml"
    assert cfg.has_credentials is False


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "strategy:\n  symbol: eth-usdt\n  candle_interval: 5m\n"
        "risk:\n  max_positions: 5\n  max_consecutive_trades: 0\n"
        "schedule:\n  enable_time_filter: false\n"
        "switch:\n  path: /var/lib/autotrader/switches.yaml\n"
    )
    cfg = load_config(path, project_root=tmp_path)
    assert cfg.symbol == "ETH-USDT"
    assert cfg.base_asset == "ETH"
    assert cfg.quote_asset == "USDT"
    assert cfg.candle_interval == "5m"
    assert cfg.max_positions == 5
    assert cfg.max_consecutive_trades == 0
    assert cfg.enable_time_filter is False
    assert cfg.switch_path == Path("/var/lib/autotrader/switches.yaml")


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("risk:\n  max_positions: 5\n")
    monkeypatch.setenv("MAX_POSITIONS", "2")
    monkeypatch.setenv("OKX_API_KEY", "k")
    monkeypatch.setenv("OKX_API_SECRET", "s")
    monkeypatch.setenv("OKX_API_PASSPHRASE", "p")
    monkeypatch.setenv("UNKNOWN_AS_DISABLED", "false")
    cfg = load_config(path, project_root=tmp_path)
    assert cfg.max_positions == 2
    assert cfg.has_credentials is True
    assert cfg.unknown_as_disabled is False


def test_bad_env_number_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv("MAX_POSITIONS", "many")
    cfg = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert cfg.max_positions == 3


def test_config_in_code():
    cfg = Config(symbol="BTC-USDC")
    assert cfg.base_asset == "BTC"
    assert cfg.quote_asset == "USDC"


def test_unknown_candle_interval_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("CANDLE_INTERVAL", "1x")
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.yaml", project_root=tmp_path)
