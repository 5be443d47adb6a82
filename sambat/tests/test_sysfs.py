"""
Tests for the sysfs broadcast / battery-info adapter.

Builds a fake ``power_supply`` tree under ``tmp_path``.

CHANGELOG:
- 2026-10-19: Initial creation -- TDD tests written first (STORY-014)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest
from sambat.src import codes
from sambat.src.codes import HealthCode, PluggedCode, StatusCode
from sambat.src.sysfs import SysfsBattery, read_sysfs_int, read_sysfs_value


def _write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def supply_root(tmp_path: Path) -> Path:
    root = tmp_path / "power_supply"
    _write(root, "battery/voltage_now", "4012000")
    _write(root, "battery/temp", "285")
    _write(root, "battery/capacity", "75")
    _write(root, "battery/status", "Charging")
    _write(root, "battery/health", "Good")
    _write(root, "battery/technology", "Li-poly")
    _write(root, "battery/cycle_count", "412")
    _write(root, "battery/current_now", "-450000")
    _write(root, "battery/charge_counter", "3000000")
    _write(root, "ac/online", "0")
    _write(root, "usb/online", "1")
    return root


class TestReadHelpers:
    """AC1: helpers return None for unreadable or malformed files."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_sysfs_value(tmp_path / "nope") is None
        assert read_sysfs_int(tmp_path / "nope") is None

    def test_non_integer(self, tmp_path: Path) -> None:
        assert read_sysfs_int(_write(tmp_path, "x", "abc")) is None

    def test_integer(self, tmp_path: Path) -> None:
        assert read_sysfs_int(_write(tmp_path, "x", " 42 ")) == 42


class TestSticky:
    """AC2: sysfs values are presented as broadcast extras."""

    def test_broadcast_extras(self, supply_root: Path) -> None:
        broadcast = SysfsBattery(supply_root).sticky()
        assert broadcast is not None
        assert broadcast.get_int(codes.EXTRA_VOLTAGE, 0) == 4012
        assert broadcast.get_int(codes.EXTRA_TEMPERATURE, 0) == 285
        assert broadcast.get_int(codes.EXTRA_LEVEL, 0) == 75
        assert broadcast.get_int(codes.EXTRA_STATUS, -1) == StatusCode.CHARGING
        assert broadcast.get_int(codes.EXTRA_HEALTH, -1) == HealthCode.GOOD
        assert broadcast.get_int(codes.EXTRA_PLUGGED, -1) == PluggedCode.USB
        assert broadcast.get_int(codes.EXTRA_CYCLE_COUNT, -1) == 412
        assert broadcast.get_str(codes.EXTRA_TECHNOLOGY) == "Li-poly"

    def test_missing_battery_gives_none(self, tmp_path: Path) -> None:
        assert SysfsBattery(tmp_path / "empty").sticky() is None

    def test_unplugged(self, supply_root: Path) -> None:
        _write(supply_root, "usb/online", "0")
        broadcast = SysfsBattery(supply_root).sticky()
        assert broadcast is not None
        assert broadcast.get_int(codes.EXTRA_PLUGGED, -1) == PluggedCode.NONE

    def test_unknown_status_text(self, supply_root: Path) -> None:
        _write(supply_root, "battery/status", "Weird")
        broadcast = SysfsBattery(supply_root).sticky()
        assert broadcast is not None
        assert broadcast.get_int(codes.EXTRA_STATUS, -1) == StatusCode.UNKNOWN

    def test_missing_files_are_absent_extras(self, tmp_path: Path) -> None:
        _write(tmp_path, "battery/capacity", "50")
        broadcast = SysfsBattery(tmp_path).sticky()
        assert broadcast is not None
        assert not broadcast.has_extra(codes.EXTRA_CYCLE_COUNT)
        assert not broadcast.has_extra(codes.EXTRA_VOLTAGE)


class TestIntProperty:
    """AC3: battery-info properties read from files, INT_MIN when unsupported."""

    def test_current_and_charge_counter(self, supply_root: Path) -> None:
        battery = SysfsBattery(supply_root)
        assert battery.get_int_property(codes.PROPERTY_CURRENT_NOW.prop_id) == -450_000
        assert battery.get_int_property(codes.PROPERTY_CHARGE_COUNTER.prop_id) == 3_000_000
        assert battery.get_int_property(codes.PROPERTY_CYCLE_COUNT.prop_id) == 412

    def test_unknown_property(self, supply_root: Path) -> None:
        assert SysfsBattery(supply_root).get_int_property(999) == codes.INT_MIN

    def test_missing_file(self, tmp_path: Path) -> None:
        battery = SysfsBattery(tmp_path)
        assert battery.get_int_property(codes.PROPERTY_CURRENT_NOW.prop_id) == codes.INT_MIN

    def test_non_integer(self, supply_root: Path) -> None:
        _write(supply_root, "battery/current_now", "n/a")
        battery = SysfsBattery(supply_root)
        assert battery.get_int_property(codes.PROPERTY_CURRENT_NOW.prop_id) == codes.INT_MIN

    def test_permission_error_propagates(
        self, supply_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def deny(self: Path, *args: object, **kwargs: object) -> str:
            raise PermissionError(str(self))

        monkeypatch.setattr(Path, "read_text", deny)
        with pytest.raises(PermissionError):
            SysfsBattery(supply_root).get_int_property(codes.PROPERTY_CYCLE_COUNT.prop_id)
