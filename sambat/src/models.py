"""
Pydantic models for normalized battery telemetry.

Defines the semantic enums (charge state, health), the per-tick realtime
reading, the privileged-dump extraction result, the full battery snapshot
and the categorized diagnostic items shown in the detail view.

All models are frozen: a reading or snapshot is produced once per cycle and
never mutated afterwards.  Partial updates go through ``model_copy``.

CHANGELOG:
- 2026-10-19: Add privileged flag to BatterySnapshot (STORY-011)
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SemanticStatus(str, Enum):
    """Charge state derived from the raw (status, plugged) code pair."""

    CHARGING_AC = "charging_ac"
    CHARGING_USB = "charging_usb"
    CHARGING_WIRELESS = "charging_wireless"
    CHARGING_GENERIC = "charging"
    DISCHARGING = "discharging"
    NOT_CHARGING = "not_charging"
    FULL = "full"
    UNKNOWN = "unknown"

    @property
    def is_charging(self) -> bool:
        return self in _CHARGING_STATES


_CHARGING_STATES = frozenset(
    {
        SemanticStatus.CHARGING_AC,
        SemanticStatus.CHARGING_USB,
        SemanticStatus.CHARGING_WIRELESS,
        SemanticStatus.CHARGING_GENERIC,
    }
)


class BatteryHealth(str, Enum):
    """Battery health as reported by the broadcast or the diagnostic dump."""

    GOOD = "good"
    OVERHEAT = "overheat"
    DEAD = "dead"
    OVER_VOLTAGE = "over_voltage"
    COLD = "cold"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Realtime path
# ---------------------------------------------------------------------------


class RealtimeReading(BaseModel):
    """One instantaneous sample of the public battery telemetry.

    Attributes:
        voltage_mv: Battery voltage in millivolts.
        current_magnitude_ma: Absolute current in milliamps after unit
            detection.  The raw sensor sign is discarded.
        temperature_dc: Temperature in tenths of a degree Celsius.
        level_pct: Charge level in percent.
        status: Semantic charge state.
    """

    model_config = {"frozen": True}

    voltage_mv: int = 0
    current_magnitude_ma: int = Field(default=0, ge=0)
    temperature_dc: int = 0
    level_pct: int = 0
    status: SemanticStatus = SemanticStatus.UNKNOWN


class LiveSample(BaseModel):
    """A realtime reading with its sign-normalized current and power.

    Attributes:
        reading: The sampled reading.
        signed_current_ma: Current in mA, negative only while discharging.
        signed_power_w: Power in watts, same sign as ``signed_current_ma``.
    """

    model_config = {"frozen": True}

    reading: RealtimeReading
    signed_current_ma: int
    signed_power_w: float


# ---------------------------------------------------------------------------
# Privileged path
# ---------------------------------------------------------------------------


class PrivilegedData(BaseModel):
    """Fields extracted from the privileged diagnostic dump.

    Every numeric field uses -1 for "not found".  ``raw_dump`` is empty when
    the shell was unavailable or returned an error string.

    Attributes:
        raw_dump: Full diagnostic dump text.
        capacity_dump: Output of the batterystats capacity grep.
        usage_cycles: Vendor usage counter divided by 100.
        cycle_count: Value of the ``Cycle count:`` line.
        charge_counter_raw: Value of the ``Charge counter:`` line, unit
            not yet normalized.
        health: Health override, when the dump carried a ``health:`` line.
        technology: Technology override, when the dump carried one.
    """

    model_config = {"frozen": True}

    raw_dump: str = ""
    capacity_dump: str = ""
    usage_cycles: int = -1
    cycle_count: int = -1
    charge_counter_raw: int = -1
    health: BatteryHealth | None = None
    technology: str | None = None

    @property
    def available(self) -> bool:
        return bool(self.raw_dump)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class BatterySnapshot(BaseModel):
    """An internally consistent battery health snapshot.

    Sentinels: -1 means "unknown" for cycle count, design capacity and
    charge counter; 0 means "pending" for estimated full capacity and
    state-of-health.

    Attributes:
        level_pct: Charge level in percent.
        status: Semantic charge state.
        health: Battery health.
        technology: Cell chemistry string (e.g. ``"Li-ion"``).
        temperature_dc: Temperature in tenths of a degree Celsius.
        voltage_mv: Voltage in millivolts.
        cycle_count: Resolved charge cycle count.
        design_capacity_mah: Rated capacity in mAh.
        charge_counter_mah: Normalized charge counter in mAh.
        estimated_full_capacity_mah: Estimated usable full capacity in mAh.
        state_of_health_pct: Estimated full capacity over design capacity,
            in percent.  May exceed 100.
        current_ma: Signed current in mA (negative = discharging).
        power_w: Signed power in watts (negative = discharging).
        raw_diagnostic_dump: Privileged dump text, empty when unavailable.
        privileged: Whether the privileged tier contributed to this snapshot.
    """

    model_config = {"frozen": True}

    level_pct: int = 0
    status: SemanticStatus = SemanticStatus.UNKNOWN
    health: BatteryHealth = BatteryHealth.UNKNOWN
    technology: str = ""
    temperature_dc: int = 0
    voltage_mv: int = 0
    cycle_count: int = -1
    design_capacity_mah: int = -1
    charge_counter_mah: int = -1
    estimated_full_capacity_mah: int = 0
    state_of_health_pct: float = 0.0
    current_ma: int = 0
    power_w: float = 0.0
    raw_diagnostic_dump: str = ""
    privileged: bool = False


# ---------------------------------------------------------------------------
# Detail view
# ---------------------------------------------------------------------------


class DiagnosticItem(BaseModel):
    """A single human-readable entry of the diagnostic detail view."""

    model_config = {"frozen": True}

    label: str
    value: str
    description: str = ""


CategorizedDiagnostics = dict[str, list[DiagnosticItem]]
"""Ordered mapping of category name -> ordered items."""
