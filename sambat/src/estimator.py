"""
Capacity and state-of-health estimation.

Back-computes the usable full-charge capacity from the normalized charge
counter and the current level, then compares it with the rated design
capacity.  No clamping is applied: a state-of-health above 100 % is valid
output (fuel-gauge calibration drift on a healthy cell).

CHANGELOG:
- 2026-10-19: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

from typing import NamedTuple


class CapacityEstimate(NamedTuple):
    """Estimated full capacity (mAh, 0 = pending) and SOH (%, 0 = pending)."""

    estimated_full_capacity_mah: int
    state_of_health_pct: float


def estimate_capacity(
    charge_counter_mah: int,
    level_pct: int,
    design_capacity_mah: int,
) -> CapacityEstimate:
    """Estimate usable full capacity and state-of-health.

    Args:
        charge_counter_mah: Normalized charge counter in mAh.
        level_pct: Current charge level in percent.
        design_capacity_mah: Rated design capacity in mAh (-1 = unknown).

    Returns:
        A :class:`CapacityEstimate`.  The full capacity is 0 unless both
        the level and the charge counter are positive; the SOH is 0 unless
        both the design capacity and the full capacity are positive.
    """
    full_capacity = 0.0
    if level_pct > 0 and charge_counter_mah > 0:
        full_capacity = charge_counter_mah / level_pct * 100

    soh = 0.0
    if design_capacity_mah > 0 and full_capacity > 0:
        soh = full_capacity / design_capacity_mah * 100

    return CapacityEstimate(int(full_capacity), soh)
