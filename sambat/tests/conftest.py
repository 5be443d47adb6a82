"""
Shared test fixtures for battery engine tests.

Provides environment isolation for EngineSettings tests and in-memory fakes
for every engine collaborator (broadcast, battery-info service, privileged
shell, capacity lookup, file probe).

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path

import pytest
from sambat.src import codes
from sambat.src.codes import PluggedCode, StatusCode
from sambat.src.sources import BatteryBroadcast

# All EngineSettings environment variable names, used for cleanup.
_ALL_ENGINE_ENV_VARS = (
    "POLL_INTERVAL_S",
    "SHELL_TIMEOUT_S",
    "CURRENT_UNIT_THRESHOLD",
    "CHARGE_COUNTER_UNIT_THRESHOLD",
    "CYCLE_COUNT_PATHS",
    "HISTORY_MAX_ENTRIES",
    "POWER_EVENT_MAX_ENTRIES",
    "POWER_SUPPLY_ROOT",
    "PRIVILEGED_SHELL_ENABLED",
    "SHELL_PREFIX",
    "DESIGN_CAPACITY_MAH",
    "DEFAULT_TECHNOLOGY",
)

SAMPLE_DUMP = """\
Current Battery Service state:
  AC powered: false
  USB powered: true
  Wireless powered: false
  Max charging current: 500000
  status: 2
  health: 2
  present: true
  level: 75
  scale: 100
  voltage: 4012
  temperature: 285
  technology: Li-ion
  Charge counter: 3000000
  mSavedBatteryUsage: [28600]
  mSavedBatteryAsoc: [95]
  mSavedBatteryBsoh: 93
  LLB CAL: 20240105
  LLB MAN: 20230811
  battery FirstUseDate: [20231002]
  mProtectBatteryMode: 1
  mSleepModeBlockOnOff: -1
  SleepTimeStart: 23:30
  SleepPatternConfidence: 0.82
  dwState: 0
  tx_id: 0x4f
  cc_current_limit: 1500
  mBackupOnOff: 1
Battery History:
  08:00 level=70 status=discharging
  09:00 level=65 status=discharging
  10:00 level=75 status=charging

[EventLogBuffer]
12-27 16:32:18.436  android.intent.action.ACTION_POWER_CONNECTED
12-27 18:02:51.120  android.intent.action.ACTION_POWER_DISCONNECTED
12-28 07:10:00.001  android.intent.action.ACTION_POWER_CONNECTED
"""
"""A representative Samsung ``dumpsys battery`` excerpt."""


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeBroadcastSource:
    """Broadcast source returning a fixed extras mapping (or None)."""

    def __init__(self, extras: Mapping[str, object] | None) -> None:
        self.extras = extras
        self.calls = 0

    def sticky(self) -> BatteryBroadcast | None:
        self.calls += 1
        if self.extras is None:
            return None
        return BatteryBroadcast(dict(self.extras))


class FakeBatteryService:
    """Battery-info service backed by a dict; values may be exceptions."""

    def __init__(self, properties: Mapping[int, int | Exception] | None = None) -> None:
        self.properties = dict(properties or {})
        self.requested: list[int] = []

    def get_int_property(self, prop_id: int) -> int:
        self.requested.append(prop_id)
        value = self.properties.get(prop_id, codes.INT_MIN)
        if isinstance(value, Exception):
            raise value
        return value


class FakeShell:
    """Privileged shell returning canned outputs per command."""

    def __init__(
        self,
        outputs: Mapping[str, str | Exception] | None = None,
        *,
        available: bool = True,
        delay_s: float = 0.0,
    ) -> None:
        self.outputs = dict(outputs or {})
        self.available = available
        self.delay_s = delay_s
        self.commands: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def execute(self, command: str) -> str:
        self.commands.append(command)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        output = self.outputs.get(command, "")
        if isinstance(output, Exception):
            raise output
        return output


class FakeCapacityLookup:
    """Capacity lookup returning a value or raising."""

    def __init__(self, value: float | Exception) -> None:
        self.value = value

    def battery_capacity(self) -> float:
        if isinstance(self.value, Exception):
            raise self.value
        return self.value


class FakeFileProbe:
    """File probe serving an in-memory path -> content mapping."""

    def __init__(self, files: Mapping[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.reads: list[str] = []

    def read_text(self, path: str) -> str:
        self.reads.append(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_engine_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all engine env vars and isolate from .env files before each test."""
    for var in _ALL_ENGINE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def discharging_extras() -> dict[str, object]:
    """Broadcast extras of a phone discharging at 75 %."""
    return {
        codes.EXTRA_VOLTAGE: 4000,
        codes.EXTRA_TEMPERATURE: 285,
        codes.EXTRA_LEVEL: 75,
        codes.EXTRA_STATUS: int(StatusCode.DISCHARGING),
        codes.EXTRA_PLUGGED: int(PluggedCode.NONE),
        codes.EXTRA_HEALTH: 2,
        codes.EXTRA_TECHNOLOGY: "Li-poly",
    }


@pytest.fixture()
def charging_extras(discharging_extras: dict[str, object]) -> dict[str, object]:
    """Broadcast extras of a phone charging over USB at 75 %."""
    return {
        **discharging_extras,
        codes.EXTRA_STATUS: int(StatusCode.CHARGING),
        codes.EXTRA_PLUGGED: int(PluggedCode.USB),
    }
