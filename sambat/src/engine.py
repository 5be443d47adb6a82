"""
Battery engine: one pipeline for every privilege tier.

Builds a :class:`BatterySnapshot` from the public sources and, when the
capability descriptor reports a usable privileged shell, from the
diagnostic dump as well.  The same code path serves the public-only and the
privileged configuration; the fallback tier is selected at runtime.

Guarantees:

- ``build_snapshot`` never raises.  Every failing source degrades to a
  sentinel and the snapshot is still produced.
- Overlapping ``build_snapshot`` calls share one in-flight build.  A caller
  that is cancelled while waiting does not cancel the build.
- Blocking reads (broadcast, sysfs, file probes) run in a worker thread so
  the event loop is never blocked.

CHANGELOG:
- 2026-10-19: Coalesce overlapping snapshot builds (STORY-016)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sambat.src import codes
from sambat.src.collector import SHELL_TIMEOUT_S, PrivilegedDataCollector
from sambat.src.estimator import estimate_capacity
from sambat.src.models import BatteryHealth, BatterySnapshot, LiveSample, PrivilegedData
from sambat.src.normalizer import (
    CHARGE_COUNTER_UNIT_THRESHOLD,
    CURRENT_UNIT_THRESHOLD,
    map_health,
)
from sambat.src.resolvers import CycleCountResolver, DesignCapacityResolver, resolve_charge_counter
from sambat.src.sampler import RealtimeSampler
from sambat.src.sources import LocalFileProbe, UnavailableCapacityLookup

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sambat.src.sources import (
        BatteryBroadcast,
        BatteryService,
        BroadcastSource,
        CapacityLookup,
        FileProbe,
        ShellExecutor,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngineCapabilities:
    """Which optional collaborators are usable for the current build.

    Attributes:
        privileged_shell: A shell is configured and its availability gate
            currently passes.
        capacity_lookup: A platform capacity lookup was supplied.
    """

    privileged_shell: bool
    capacity_lookup: bool


def merge_live(snapshot: BatterySnapshot, live: LiveSample) -> BatterySnapshot:
    """Overwrite only the live-owned fields of *snapshot* with *live*.

    Cycle count, capacities, charge counter, health and the dump are left
    untouched.
    """
    reading = live.reading
    return snapshot.model_copy(
        update={
            "voltage_mv": reading.voltage_mv,
            "current_ma": live.signed_current_ma,
            "power_w": live.signed_power_w,
            "temperature_dc": reading.temperature_dc,
            "status": reading.status,
            "level_pct": reading.level_pct,
        }
    )


class BatteryEngine:
    """Builds live samples and full battery snapshots.

    Args:
        broadcast: Sticky battery broadcast source.
        service: Battery-info service.
        shell: Optional privileged shell.  ``None`` means the privileged
            tier is absent.
        capacity_lookup: Optional platform capacity lookup.  ``None`` uses
            the always-failing stub.
        probe: Filesystem probe for cycle-count files.
        cycle_count_paths: Probe paths, in order.
        shell_timeout_s: Timeout per privileged command.
        current_unit_threshold: Current micro-unit detection threshold.
        charge_counter_unit_threshold: Charge-counter micro-unit threshold.
        default_technology: Technology reported when no source has one.
    """

    def __init__(
        self,
        broadcast: BroadcastSource,
        service: BatteryService,
        *,
        shell: ShellExecutor | None = None,
        capacity_lookup: CapacityLookup | None = None,
        probe: FileProbe | None = None,
        cycle_count_paths: Sequence[str] = codes.CYCLE_COUNT_PATHS,
        shell_timeout_s: float = SHELL_TIMEOUT_S,
        current_unit_threshold: int = CURRENT_UNIT_THRESHOLD,
        charge_counter_unit_threshold: int = CHARGE_COUNTER_UNIT_THRESHOLD,
        default_technology: str = codes.DEFAULT_TECHNOLOGY,
    ) -> None:
        self._broadcast = broadcast
        self._service = service
        self._sampler = RealtimeSampler(
            broadcast, service, current_unit_threshold=current_unit_threshold
        )
        self._collector = (
            PrivilegedDataCollector(shell, timeout_s=shell_timeout_s)
            if shell is not None
            else None
        )
        self._has_capacity_lookup = capacity_lookup is not None
        self._design = DesignCapacityResolver(capacity_lookup or UnavailableCapacityLookup())
        self._cycles = CycleCountResolver(
            service, probe or LocalFileProbe(), paths=cycle_count_paths
        )
        self._charge_counter_unit_threshold = charge_counter_unit_threshold
        self._default_technology = default_technology
        self._inflight: asyncio.Future[BatterySnapshot] | None = None

    # -- capabilities -------------------------------------------------------

    def capabilities(self) -> EngineCapabilities:
        """Evaluate the capability descriptor for a build starting now."""
        return EngineCapabilities(
            privileged_shell=self._collector is not None and self._collector.is_available(),
            capacity_lookup=self._has_capacity_lookup,
        )

    # -- live path ----------------------------------------------------------

    async def sample_live(self) -> LiveSample:
        """Sample the live metrics off the event loop."""
        return await asyncio.to_thread(self._sampler.sample_live)

    # -- full snapshot ------------------------------------------------------

    async def build_snapshot(self) -> BatterySnapshot:
        """Build a full snapshot, joining an in-flight build if one exists."""
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._build_snapshot())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            logger.debug("Snapshot build already in flight, joining it")
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future[BatterySnapshot]) -> None:
        if self._inflight is future:
            self._inflight = None

    async def _build_snapshot(self) -> BatterySnapshot:
        try:
            caps = self.capabilities()
            logger.info(
                "Building snapshot (privileged_shell=%s, capacity_lookup=%s)",
                caps.privileged_shell,
                caps.capacity_lookup,
            )
            privileged = PrivilegedData()
            if caps.privileged_shell and self._collector is not None:
                privileged = await self._collector.collect()
            return await asyncio.to_thread(self._assemble, privileged)
        except Exception:
            logger.error("Snapshot build error, reporting defaults", exc_info=True)
            return BatterySnapshot(technology=self._default_technology)

    def _read_broadcast(self) -> BatteryBroadcast | None:
        try:
            return self._broadcast.sticky()
        except Exception:
            logger.warning("Battery broadcast read failed", exc_info=True)
            return None

    def _assemble(self, privileged: PrivilegedData) -> BatterySnapshot:
        """Resolve every remaining field synchronously (worker thread)."""
        live = self._sampler.sample_live()
        broadcast = self._read_broadcast()

        health = BatteryHealth.UNKNOWN
        technology = self._default_technology
        if broadcast is not None:
            health = map_health(broadcast.get_int(codes.EXTRA_HEALTH, -1))
            technology = broadcast.get_str(codes.EXTRA_TECHNOLOGY) or technology
        if privileged.health is not None:
            health = privileged.health
        if privileged.technology:
            technology = privileged.technology

        charge_counter = resolve_charge_counter(
            privileged, self._service, threshold=self._charge_counter_unit_threshold
        )
        design_capacity = self._design.resolve(privileged.capacity_dump)
        cycle_count = self._cycles.resolve(privileged, broadcast)
        estimate = estimate_capacity(
            charge_counter, live.reading.level_pct, design_capacity
        )

        snapshot = BatterySnapshot(
            health=health,
            technology=technology,
            cycle_count=cycle_count,
            design_capacity_mah=design_capacity,
            charge_counter_mah=charge_counter,
            estimated_full_capacity_mah=estimate.estimated_full_capacity_mah,
            state_of_health_pct=estimate.state_of_health_pct,
            raw_diagnostic_dump=privileged.raw_dump,
            privileged=privileged.available,
        )
        snapshot = merge_live(snapshot, live)
        logger.info(
            "Snapshot built: level=%d%% cycles=%d design=%d mAh full=%d mAh soh=%.1f%%",
            snapshot.level_pct,
            snapshot.cycle_count,
            snapshot.design_capacity_mah,
            snapshot.estimated_full_capacity_mah,
            snapshot.state_of_health_pct,
        )
        return snapshot
