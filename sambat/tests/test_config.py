"""
Tests for EngineSettings -- Pydantic BaseSettings for the battery engine.

Verifies defaults, environment overrides and validation of intervals,
thresholds, windows, the shell prefix and the design capacity.

CHANGELOG:
- 2026-10-19: Add design_capacity_mah tests (STORY-012)
- 2026-10-19: Initial creation -- TDD tests written first (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError
from sambat.src import codes
from sambat.src.config import EngineSettings


class TestDefaults:
    """AC1: every setting has a default."""

    def test_defaults(self) -> None:
        settings = EngineSettings()
        assert settings.poll_interval_s == 1.0
        assert settings.shell_timeout_s == 5.0
        assert settings.current_unit_threshold == 10_000
        assert settings.charge_counter_unit_threshold == 100_000
        assert settings.cycle_count_paths == list(codes.CYCLE_COUNT_PATHS)
        assert settings.history_max_entries == 14
        assert settings.power_event_max_entries == 10
        assert settings.power_supply_root == "/sys/class/power_supply"
        assert settings.privileged_shell_enabled is False
        assert settings.shell_prefix == ["sh", "-c"]
        assert settings.design_capacity_mah == 0
        assert settings.default_technology == "Li-ion"


class TestEnvOverrides:
    """AC2: settings load from environment variables and .env."""

    def test_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POLL_INTERVAL_S", "2.5")
        monkeypatch.setenv("PRIVILEGED_SHELL_ENABLED", "true")
        monkeypatch.setenv("SHELL_PREFIX", '["su", "-c"]')
        monkeypatch.setenv("CYCLE_COUNT_PATHS", '["/tmp/cycles"]')
        monkeypatch.setenv("CURRENT_UNIT_THRESHOLD", "5000")
        settings = EngineSettings()
        assert settings.poll_interval_s == 2.5
        assert settings.privileged_shell_enabled is True
        assert settings.shell_prefix == ["su", "-c"]
        assert settings.cycle_count_paths == ["/tmp/cycles"]
        assert settings.current_unit_threshold == 5000

    def test_dotenv_file(self) -> None:
        Path(".env").write_text("DESIGN_CAPACITY_MAH=4500\n", encoding="utf-8")
        assert EngineSettings().design_capacity_mah == 4500


class TestValidation:
    """AC3: invalid values are rejected."""

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("POLL_INTERVAL_S", "0"),
            ("SHELL_TIMEOUT_S", "-1"),
            ("CURRENT_UNIT_THRESHOLD", "0"),
            ("CHARGE_COUNTER_UNIT_THRESHOLD", "-5"),
            ("HISTORY_MAX_ENTRIES", "0"),
            ("POWER_EVENT_MAX_ENTRIES", "0"),
            ("SHELL_PREFIX", "[]"),
            ("DESIGN_CAPACITY_MAH", "-1"),
        ],
    )
    def test_invalid_values(self, monkeypatch: pytest.MonkeyPatch, var: str, value: str) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ValidationError):
            EngineSettings()
