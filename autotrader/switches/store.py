"""
Persisted on/off switches in a YAML file.

Readers get a SwitchState instead of a bare bool so that a store that cannot
be read is visible as UNKNOWN rather than silently falling back to a cached value.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger("autotrader.switches")

DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class SwitchState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNKNOWN = "unknown"


@dataclass
class Schedule:
    enabled: bool = False
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None
    days_of_week: List[str] = field(default_factory=list)

    def allows(self, now: datetime) -> bool:
        if not self.enabled:
            return True
        if DAYS[now.weekday()] not in [d.lower() for d in self.days_of_week]:
            return False
        if self.start_time and self.end_time:
            current = now.strftime("%H:%M")
            if current < self.start_time or current > self.end_time:
                return False
        return True


@dataclass
class Switch:
    name: str
    description: str = ""
    is_enabled: bool = False
    prevent_auto_disable: bool = True
    schedule: Schedule = field(default_factory=Schedule)

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Enabled, and (if auto-disable is allowed) inside its schedule."""
        if not self.is_enabled:
            return False
        if self.prevent_auto_disable:
            return True
        return self.schedule.allows(now or datetime.now(timezone.utc))

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Switch":
        sched = data.get("schedule") or {}
        if sched.get("enabled") and not sched.get("days_of_week"):
            raise ValueError(f"switch {name}: schedule days must be specified when schedule is enabled")
        return cls(
            name=name,
            description=str(data.get("description", "")),
            is_enabled=bool(data.get("is_enabled", False)),
            prevent_auto_disable=bool(data.get("prevent_auto_disable", True)),
            schedule=Schedule(
                enabled=bool(sched.get("enabled", False)),
                start_time=sched.get("start_time"),
                end_time=sched.get("end_time"),
                days_of_week=list(sched.get("days_of_week") or []),
            ),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("name")
        return data


DEFAULT_SWITCHES = [
    Switch("auto_trading", "Enable/disable automatic trading", is_enabled=False),
    Switch("risk_management", "Risk management controls", is_enabled=True),
    Switch("notifications", "Trading notifications", is_enabled=True),
    Switch(
        "market_hours",
        "Trading during market hours only (manual control)",
        is_enabled=False,
        schedule=Schedule(
            enabled=False,
            start_time="09:00",
            end_time="17:00",
            days_of_week=["monday", "tuesday", "wednesday", "thursday", "friday"],
        ),
    ),
]


class SwitchStore:
    """YAML-backed switch store: {name: {is_enabled, prevent_auto_disable, ...}}."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Switch]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{self.path}: expected a mapping of switches")
        return {name: Switch.from_dict(name, data or {}) for name, data in raw.items()}

    def _save(self, switches: Dict[str, Switch]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.safe_dump({n: s.to_dict() for n, s in switches.items()}, f, sort_keys=True)
        tmp.replace(self.path)

    def get(self, name: str) -> Optional[Switch]:
        with self._lock:
            return self._load().get(name)

    def list(self) -> List[Switch]:
        with self._lock:
            return list(self._load().values())

    def get_state(self, name: str, now: Optional[datetime] = None) -> SwitchState:
        """ENABLED/DISABLED from the file; UNKNOWN if it cannot be read. A missing switch is DISABLED."""
        try:
            switch = self.get(name)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error("Could not read switch %s from %s: %s", name, self.path, e)
            return SwitchState.UNKNOWN
        if switch is None:
            return SwitchState.DISABLED
        return SwitchState.ENABLED if switch.is_active(now) else SwitchState.DISABLED

    def set_enabled(self, name: str, enabled: bool) -> Switch:
        """Enable or disable a switch, creating it if needed. Enabling also blocks auto-disable."""
        with self._lock:
            switches = self._load()
            switch = switches.get(name) or Switch(name)
            switch.is_enabled = enabled
            if enabled:
                switch.prevent_auto_disable = True
            switches[name] = switch
            self._save(switches)
        logger.info("Switch %s %s", name, "ENABLED" if enabled else "DISABLED")
        return switch

    def initialize_defaults(self) -> List[str]:
        """Create missing default switches. Returns the names created."""
        with self._lock:
            switches = self._load()
            created = [s.name for s in DEFAULT_SWITCHES if s.name not in switches]
            for s in DEFAULT_SWITCHES:
                switches.setdefault(s.name, Switch.from_dict(s.name, s.to_dict()))
            if created:
                self._save(switches)
        return created
