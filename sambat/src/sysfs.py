"""
sysfs adapter for the broadcast and battery-info collaborators.

Reads the kernel ``power_supply`` class (Linux, Android with shell access)
and presents it the way the platform battery broadcast and battery-info
service do: integer status / plugged / health codes, voltage in mV,
temperature in tenths of a degree, and raw (unit-ambiguous) current and
charge-counter properties.

Layout expected under *root*::

    battery/{voltage_now,temp,capacity,status,health,technology,
             cycle_count,current_now,charge_counter}
    {ac,usb,wireless}/online

CHANGELOG:
- 2026-10-19: Initial creation (STORY-014)

TODO:
- None
"""

from __future__ import annotations

import logging
from pathlib import Path

from sambat.src import codes
from sambat.src.codes import HealthCode, PluggedCode, StatusCode
from sambat.src.sources import BatteryBroadcast

logger = logging.getLogger(__name__)

_STATUS_TEXT: dict[str, int] = {
    "charging": StatusCode.CHARGING,
    "discharging": StatusCode.DISCHARGING,
    "not charging": StatusCode.NOT_CHARGING,
    "full": StatusCode.FULL,
    "unknown": StatusCode.UNKNOWN,
}

_HEALTH_TEXT: dict[str, int] = {
    "good": HealthCode.GOOD,
    "overheat": HealthCode.OVERHEAT,
    "dead": HealthCode.DEAD,
    "over voltage": HealthCode.OVER_VOLTAGE,
    "cold": HealthCode.COLD,
    "unspecified failure": HealthCode.UNSPECIFIED_FAILURE,
}

_PLUG_SUPPLIES: tuple[tuple[str, int], ...] = (
    ("ac", PluggedCode.AC),
    ("usb", PluggedCode.USB),
    ("wireless", PluggedCode.WIRELESS),
)

_PROPERTY_FILES: dict[int, str] = {
    codes.PROPERTY_CHARGE_COUNTER.prop_id: "charge_counter",
    codes.PROPERTY_CURRENT_NOW.prop_id: "current_now",
    codes.PROPERTY_CYCLE_COUNT.prop_id: "cycle_count",
}


def read_sysfs_value(path: Path) -> str | None:
    """Read a stripped value from a sysfs file, or None if unreadable."""
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None


def read_sysfs_int(path: Path) -> int | None:
    """Read an integer value from a sysfs file, or None."""
    value = read_sysfs_value(path)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class SysfsBattery:
    """Broadcast source and battery-info service backed by sysfs.

    Args:
        root: The ``power_supply`` class directory.
        battery: Name of the battery supply under *root*.
    """

    def __init__(self, root: str | Path = "/sys/class/power_supply", battery: str = "battery") -> None:
        self._root = Path(root)
        self._battery = self._root / battery

    def sticky(self) -> BatteryBroadcast | None:
        """Build a broadcast-shaped snapshot, or None when no battery exists."""
        if not self._battery.is_dir():
            return None

        extras: dict[str, object] = {}

        voltage_uv = read_sysfs_int(self._battery / "voltage_now")
        if voltage_uv is not None:
            extras[codes.EXTRA_VOLTAGE] = voltage_uv // 1000

        for extra, name in (
            (codes.EXTRA_TEMPERATURE, "temp"),
            (codes.EXTRA_LEVEL, "capacity"),
            (codes.EXTRA_CYCLE_COUNT, "cycle_count"),
        ):
            value = read_sysfs_int(self._battery / name)
            if value is not None:
                extras[extra] = value

        status = read_sysfs_value(self._battery / "status")
        if status is not None:
            extras[codes.EXTRA_STATUS] = _STATUS_TEXT.get(status.lower(), StatusCode.UNKNOWN)

        health = read_sysfs_value(self._battery / "health")
        if health is not None:
            extras[codes.EXTRA_HEALTH] = _HEALTH_TEXT.get(health.lower(), HealthCode.UNKNOWN)

        technology = read_sysfs_value(self._battery / "technology")
        if technology:
            extras[codes.EXTRA_TECHNOLOGY] = technology

        extras[codes.EXTRA_PLUGGED] = self._plugged()
        return BatteryBroadcast(extras)

    def get_int_property(self, prop_id: int) -> int:
        """Read a battery-info property; ``INT_MIN`` when unsupported.

        Raises:
            PermissionError: When the kernel denies access to the file.
        """
        name = _PROPERTY_FILES.get(prop_id)
        if name is None:
            return codes.INT_MIN
        path = self._battery / name
        try:
            text = path.read_text(encoding="utf-8").strip()
        except PermissionError:
            raise
        except OSError:
            return codes.INT_MIN
        try:
            return int(text)
        except ValueError:
            logger.debug("Non-integer value in %s: %r", path, text)
            return codes.INT_MIN

    def _plugged(self) -> int:
        for supply, code in _PLUG_SUPPLIES:
            if read_sysfs_int(self._root / supply / "online") == 1:
                return code
        return PluggedCode.NONE
