"""Switches: persisted on/off flags read by the trading engine."""

from autotrader.switches.store import DEFAULT_SWITCHES, Schedule, Switch, SwitchState, SwitchStore

__all__ = ["DEFAULT_SWITCHES", "Schedule", "Switch", "SwitchState", "SwitchStore"]
