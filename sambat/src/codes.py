"""
Android battery platform code table -- single source of truth.

Defines the integer codes reported by the battery broadcast (status, plugged,
health), the battery-info property identifiers, the "unsupported" sentinels,
the broadcast extra key names, the known cycle-count probe paths, and the
diagnostic shell commands used by the privileged collector.

References:
    - android.os.BatteryManager (EXTRA_*, BATTERY_STATUS_*, BATTERY_PLUGGED_*,
      BATTERY_HEALTH_*, BATTERY_PROPERTY_*)
    - ``dumpsys battery`` output on Samsung One UI devices

CHANGELOG:
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# ---------------------------------------------------------------------------
# Broadcast integer codes
# ---------------------------------------------------------------------------


class StatusCode(IntEnum):
    """Raw ``EXTRA_STATUS`` values."""

    UNKNOWN = 1
    CHARGING = 2
    DISCHARGING = 3
    NOT_CHARGING = 4
    FULL = 5


class PluggedCode(IntEnum):
    """Raw ``EXTRA_PLUGGED`` values (0 means running on battery)."""

    NONE = 0
    AC = 1
    USB = 2
    WIRELESS = 4
    DOCK = 8


class HealthCode(IntEnum):
    """Raw ``EXTRA_HEALTH`` values."""

    UNKNOWN = 1
    GOOD = 2
    OVERHEAT = 3
    DEAD = 4
    OVER_VOLTAGE = 5
    UNSPECIFIED_FAILURE = 6
    COLD = 7


# ---------------------------------------------------------------------------
# Battery-info service properties and sentinels
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PropertyDef:
    """Definition of a single battery-info service property.

    Attributes:
        prop_id: Integer identifier passed to ``get_int_property``.
        name: Human-readable identifier used in log messages.
        unit: Unit as reported by the platform (may be ambiguous).
        description: Free-text description of the property.
    """

    prop_id: int
    name: str
    unit: str
    description: str = ""


PROPERTY_CHARGE_COUNTER = PropertyDef(
    prop_id=1,
    name="charge_counter",
    unit="uAh|mAh",
    description="Remaining stored charge reported by the fuel gauge",
)

PROPERTY_CURRENT_NOW = PropertyDef(
    prop_id=2,
    name="current_now",
    unit="uA|mA",
    description="Instantaneous battery current, sign convention is vendor-specific",
)

PROPERTY_CYCLE_COUNT = PropertyDef(
    prop_id=8,
    name="cycle_count",
    unit="count",
    description="Charge cycle count, permission-restricted on most releases",
)

INT_MIN: int = -(2**31)
"""Value returned by the platform when a property is not supported."""

INT_MAX: int = 2**31 - 1
"""Alternate "unsupported" value returned by some vendor HALs."""

UNSUPPORTED_SENTINELS: frozenset[int] = frozenset({INT_MIN, INT_MAX})


# ---------------------------------------------------------------------------
# Broadcast extra keys
# ---------------------------------------------------------------------------

EXTRA_VOLTAGE = "voltage"
EXTRA_TEMPERATURE = "temperature"
EXTRA_LEVEL = "level"
EXTRA_STATUS = "status"
EXTRA_PLUGGED = "plugged"
EXTRA_HEALTH = "health"
EXTRA_TECHNOLOGY = "technology"

EXTRA_CYCLE_COUNT = "android.os.extra.CYCLE_COUNT"
"""Cycle-count extra exposed to apps targeting recent platform versions."""

LEGACY_CYCLE_COUNT_EXTRAS: tuple[str, ...] = ("battery_cycle_count", "cycle_count")
"""Vendor-specific extra names checked after :data:`EXTRA_CYCLE_COUNT`."""


# ---------------------------------------------------------------------------
# Filesystem probes and shell commands
# ---------------------------------------------------------------------------

CYCLE_COUNT_PATHS: tuple[str, ...] = (
    "/proc/battery/cycle_count",
    "/proc/bms/cycle_count",
    "/sys/class/power_supply/bms/cycle_count",
)
"""Known diagnostic files holding a plain-integer cycle count, in probe order."""

DUMP_COMMAND = "dumpsys battery"
"""Privileged command producing the unstructured battery diagnostic dump."""

CAPACITY_COMMAND = "dumpsys batterystats | grep Capacity"
"""Privileged command producing the rated-capacity line of batterystats."""

DEFAULT_TECHNOLOGY = "Li-ion"
