"""
Pure normalizers for raw battery telemetry.

Covers the unit and sign conventions of the engine:

- Status mapping: raw (status, plugged) codes -> :class:`SemanticStatus`.
- Health mapping: raw health code -> :class:`BatteryHealth`.
- Current magnitude: raw current (uA or mA) -> non-negative mA.
- Charge counter: raw counter (uAh or mAh) -> mAh.
- Sign normalization: signed current and power derived from the semantic
  status, never from the raw sensor sign.

The unit thresholds are magnitude heuristics.  Readings that genuinely
straddle them are misclassified; both are exposed as keyword arguments so
callers can override them from configuration.

This module is pure: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-10-19: Map dock plug code to generic charging (STORY-004)
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from sambat.src.codes import UNSUPPORTED_SENTINELS, HealthCode, PluggedCode, StatusCode
from sambat.src.models import BatteryHealth, LiveSample, RealtimeReading, SemanticStatus

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CURRENT_UNIT_THRESHOLD: int = 10_000
"""Raw current magnitudes above this are treated as microamps."""

CHARGE_COUNTER_UNIT_THRESHOLD: int = 100_000
"""Raw charge counters above this are treated as microamp-hours."""

_PLUGGED_STATES: dict[int, SemanticStatus] = {
    PluggedCode.AC: SemanticStatus.CHARGING_AC,
    PluggedCode.USB: SemanticStatus.CHARGING_USB,
    PluggedCode.WIRELESS: SemanticStatus.CHARGING_WIRELESS,
}

_STATUS_STATES: dict[int, SemanticStatus] = {
    StatusCode.DISCHARGING: SemanticStatus.DISCHARGING,
    StatusCode.NOT_CHARGING: SemanticStatus.NOT_CHARGING,
    StatusCode.FULL: SemanticStatus.FULL,
}

_HEALTH_STATES: dict[int, BatteryHealth] = {
    HealthCode.GOOD: BatteryHealth.GOOD,
    HealthCode.OVERHEAT: BatteryHealth.OVERHEAT,
    HealthCode.DEAD: BatteryHealth.DEAD,
    HealthCode.OVER_VOLTAGE: BatteryHealth.OVER_VOLTAGE,
    HealthCode.COLD: BatteryHealth.COLD,
}


# ---------------------------------------------------------------------------
# Code mapping
# ---------------------------------------------------------------------------


def map_status(status_code: int, plugged_code: int) -> SemanticStatus:
    """Map raw broadcast status and plugged codes to a semantic state.

    Total over all integers: unrecognized status codes map to
    :attr:`SemanticStatus.UNKNOWN`.  While charging, an unrecognized plug
    code (including dock) maps to :attr:`SemanticStatus.CHARGING_GENERIC`.
    """
    if status_code == StatusCode.CHARGING:
        return _PLUGGED_STATES.get(plugged_code, SemanticStatus.CHARGING_GENERIC)
    return _STATUS_STATES.get(status_code, SemanticStatus.UNKNOWN)


def map_health(health_code: int) -> BatteryHealth:
    """Map a raw broadcast health code to :class:`BatteryHealth`."""
    return _HEALTH_STATES.get(health_code, BatteryHealth.UNKNOWN)


# ---------------------------------------------------------------------------
# Unit detection
# ---------------------------------------------------------------------------


def normalize_current_magnitude(
    raw: int,
    *,
    threshold: int = CURRENT_UNIT_THRESHOLD,
) -> int:
    """Convert a raw current reading to a non-negative magnitude in mA.

    Args:
        raw: Raw signed current from the battery-info service.
        threshold: Magnitudes above this are assumed to be microamps.

    Returns:
        The magnitude in mA, or 0 when *raw* is an "unsupported" sentinel.
    """
    if raw in UNSUPPORTED_SENTINELS:
        return 0
    magnitude = abs(raw)
    if magnitude > threshold:
        return magnitude // 1000
    return magnitude


def normalize_charge_counter(
    raw: int,
    *,
    threshold: int = CHARGE_COUNTER_UNIT_THRESHOLD,
) -> int:
    """Convert a raw charge counter to mAh.

    A typical phone battery holds a few thousand mAh, i.e. a few million
    uAh, so values above *threshold* are divided by 1000.

    Args:
        raw: Raw charge counter from the dump or the battery-info service.
        threshold: Values above this are assumed to be microamp-hours.

    Returns:
        The counter in mAh, or -1 when *raw* is non-positive or a sentinel.
    """
    if raw in UNSUPPORTED_SENTINELS or raw <= 0:
        return -1
    if raw > threshold:
        return raw // 1000
    return raw


# ---------------------------------------------------------------------------
# Sign normalization
# ---------------------------------------------------------------------------


def apply_sign(reading: RealtimeReading) -> LiveSample:
    """Derive signed current and power from the reading's semantic status.

    The sign is -1 while discharging and +1 in every other state, so the
    displayed numbers always agree with the displayed status.
    """
    sign = -1 if reading.status is SemanticStatus.DISCHARGING else 1
    magnitude = reading.current_magnitude_ma
    power_w = abs(reading.voltage_mv) * magnitude / 1_000_000
    return LiveSample(
        reading=reading,
        signed_current_ma=magnitude * sign,
        signed_power_w=power_w * sign,
    )
