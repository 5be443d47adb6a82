"""
Fallback resolvers for the slow-changing battery figures.

- :class:`DesignCapacityResolver` -- rated capacity from the platform
  capability lookup, then from the privileged batterystats capacity line.
- :class:`CycleCountResolver` -- ordered five-tier fallback for the charge
  cycle count.
- :func:`resolve_charge_counter` -- picks the privileged or public charge
  counter and normalizes it to mAh.

Every tier catches its own failures and the chain moves on; a resolver
never raises.  Unresolved values are reported as -1.

CHANGELOG:
- 2026-10-19: Add batterystats capacity fallback to DesignCapacityResolver (STORY-012)
- 2026-10-19: Accept legacy cycle-count broadcast extras (STORY-009)
- 2026-10-19: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sambat.src import codes
from sambat.src.normalizer import CHARGE_COUNTER_UNIT_THRESHOLD, normalize_charge_counter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sambat.src.models import PrivilegedData
    from sambat.src.sources import BatteryBroadcast, BatteryService, CapacityLookup, FileProbe

logger = logging.getLogger(__name__)

_FIRST_INT = re.compile(r"\d+")


# ---------------------------------------------------------------------------
# Design capacity
# ---------------------------------------------------------------------------


class DesignCapacityResolver:
    """Resolves the vendor-declared rated capacity in mAh.

    Args:
        lookup: Platform capability lookup (may be a stub that always fails).
    """

    def __init__(self, lookup: CapacityLookup) -> None:
        self._lookup = lookup

    def resolve(self, capacity_dump: str = "") -> int:
        """Return the design capacity in mAh, or -1 when unresolved.

        Args:
            capacity_dump: Optional batterystats capacity grep output, used
                when the platform lookup fails.
        """
        try:
            capacity = int(self._lookup.battery_capacity())
        except Exception:
            logger.debug("Platform capacity lookup failed", exc_info=True)
        else:
            if capacity > 0:
                return capacity
            logger.debug("Platform capacity lookup returned %d, ignoring", capacity)

        match = _FIRST_INT.search(capacity_dump)
        if match is not None:
            capacity = int(match.group(0))
            if capacity > 0:
                return capacity

        return -1


# ---------------------------------------------------------------------------
# Cycle count
# ---------------------------------------------------------------------------


class CycleCountResolver:
    """Resolves the charge cycle count through an ordered fallback chain.

    Tiers, first positive value wins:

    1. Privileged vendor usage counter / 100.
    2. Privileged ``Cycle count:`` line.
    3. Broadcast cycle-count extra, then legacy extra names.
    4. Battery-info cycle-count property (may be permission-denied).
    5. Known diagnostic files, in order.

    Args:
        service: Battery-info service.
        probe: Read-only filesystem probe.
        paths: Diagnostic file paths to probe, in order.
    """

    def __init__(
        self,
        service: BatteryService,
        probe: FileProbe,
        *,
        paths: Sequence[str] = codes.CYCLE_COUNT_PATHS,
    ) -> None:
        self._service = service
        self._probe = probe
        self._paths = tuple(paths)

    def resolve(
        self,
        privileged: PrivilegedData | None,
        broadcast: BatteryBroadcast | None,
    ) -> int:
        """Return the cycle count, or -1 when every tier fails."""
        tiers = (
            ("privileged_usage", lambda: self._from_privileged_usage(privileged)),
            ("privileged_cycle_count", lambda: self._from_privileged_count(privileged)),
            ("broadcast_extra", lambda: self._from_broadcast(broadcast)),
            ("battery_service", self._from_service),
            ("file_probe", self._from_files),
        )
        for name, tier in tiers:
            try:
                value = tier()
            except Exception:
                logger.debug("Cycle count tier '%s' failed", name, exc_info=True)
                continue
            if value > 0:
                logger.debug("Cycle count %d resolved from %s", value, name)
                return value

        logger.info("Cycle count unresolved by all tiers")
        return -1

    @staticmethod
    def _from_privileged_usage(privileged: PrivilegedData | None) -> int:
        return privileged.usage_cycles if privileged is not None else -1

    @staticmethod
    def _from_privileged_count(privileged: PrivilegedData | None) -> int:
        return privileged.cycle_count if privileged is not None else -1

    @staticmethod
    def _from_broadcast(broadcast: BatteryBroadcast | None) -> int:
        if broadcast is None:
            return -1
        for key in (codes.EXTRA_CYCLE_COUNT, *codes.LEGACY_CYCLE_COUNT_EXTRAS):
            if broadcast.has_extra(key):
                value = broadcast.get_int(key, -1)
                if value > 0:
                    return value
        return -1

    def _from_service(self) -> int:
        try:
            value = self._service.get_int_property(codes.PROPERTY_CYCLE_COUNT.prop_id)
        except PermissionError:
            logger.debug("Cycle count property is permission-restricted")
            return -1
        if value in codes.UNSUPPORTED_SENTINELS:
            return -1
        return value

    def _from_files(self) -> int:
        for path in self._paths:
            try:
                value = int(self._probe.read_text(path).strip())
            except (OSError, ValueError):
                continue
            if value > 0:
                return value
        return -1


# ---------------------------------------------------------------------------
# Charge counter
# ---------------------------------------------------------------------------


def resolve_charge_counter(
    privileged: PrivilegedData | None,
    service: BatteryService,
    *,
    threshold: int = CHARGE_COUNTER_UNIT_THRESHOLD,
) -> int:
    """Return the charge counter in mAh, preferring the privileged dump.

    Falls back to the battery-info charge-counter property.  Returns -1 when
    neither source yields a positive value.
    """
    raw = privileged.charge_counter_raw if privileged is not None else -1
    if raw <= 0:
        try:
            raw = service.get_int_property(codes.PROPERTY_CHARGE_COUNTER.prop_id)
        except Exception:
            logger.warning("Charge counter read failed", exc_info=True)
            raw = -1
    return normalize_charge_counter(raw, threshold=threshold)
