"""
Battery monitor: observable snapshot cell, live feed and refresh triggers.

Two operations feed a single :class:`SnapshotCell`:

1. **Live feed**: every ``interval_s`` seconds, samples the live metrics and
   merges them onto the latest snapshot (live-owned fields only).  Ticks are
   skipped until a first snapshot exists.
2. **Refresh**: builds a full snapshot on demand (manual refresh or a
   privileged-access transition) and publishes it.

The live feed is a caller-owned handle: :meth:`BatteryMonitor.start_live`
returns the same :class:`LiveFeed` for as long as it has not been stopped,
so starting twice never creates a second task.  Stopping cancels the
periodic task only; a tick already in progress runs to completion.

CHANGELOG:
- 2026-10-19: Replace loop-running flag with LiveFeed handle (STORY-017)
- 2026-10-19: Initial creation (STORY-017)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from functools import cached_property
from typing import TYPE_CHECKING

from sambat.src.diagnostics import (
    HISTORY_MAX_ENTRIES,
    POWER_EVENT_MAX_ENTRIES,
    overlay_live,
    parse_diagnostics,
)
from sambat.src.engine import merge_live
from sambat.src.models import LiveSample, RealtimeReading

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sambat.src.engine import BatteryEngine
    from sambat.src.models import BatterySnapshot, CategorizedDiagnostics

logger = logging.getLogger(__name__)

POLL_INTERVAL_S: float = 1.0
"""Default live sampling interval."""


# ---------------------------------------------------------------------------
# Observable cell
# ---------------------------------------------------------------------------


class SnapshotCell:
    """Single-writer, multi-reader holder of the latest snapshot.

    Readers either read :attr:`value` (never blocks) or iterate
    :meth:`updates`, which yields the latest value after each publish.  A
    slow reader skips intermediate values rather than queueing them.
    """

    def __init__(self) -> None:
        self._value: BatterySnapshot | None = None
        self._version = 0
        self._changed = asyncio.Event()

    @property
    def value(self) -> BatterySnapshot | None:
        return self._value

    @property
    def version(self) -> int:
        """Number of publishes so far."""
        return self._version

    def publish(self, snapshot: BatterySnapshot) -> None:
        self._value = snapshot
        self._version += 1
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def updates(self) -> AsyncIterator[BatterySnapshot]:
        """Yield the current value (if any), then every subsequent one."""
        seen = 0
        while True:
            if self._version != seen and self._value is not None:
                seen = self._version
                yield self._value
                continue
            await self._changed.wait()


# ---------------------------------------------------------------------------
# Live feed handle
# ---------------------------------------------------------------------------


class LiveFeed:
    """Handle of the periodic live-sampling task.

    Args:
        task: The running sampling task.
    """

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def running(self) -> bool:
        return not self._task.done()

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


def live_from_snapshot(snapshot: BatterySnapshot) -> LiveSample:
    """Rebuild the live sample carried by a snapshot's live-owned fields."""
    return LiveSample(
        reading=RealtimeReading(
            voltage_mv=snapshot.voltage_mv,
            current_magnitude_ma=abs(snapshot.current_ma),
            temperature_dc=snapshot.temperature_dc,
            level_pct=snapshot.level_pct,
            status=snapshot.status,
        ),
        signed_current_ma=snapshot.current_ma,
        signed_power_w=snapshot.power_w,
    )


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


class BatteryMonitor:
    """Owns the snapshot cell and schedules live ticks and refreshes.

    Args:
        engine: The battery engine.
        interval_s: Seconds between live ticks.
        history_max_entries: Window of the battery-history detail category.
        power_event_max_entries: Window of the power-event detail category.
    """

    def __init__(
        self,
        engine: BatteryEngine,
        *,
        interval_s: float = POLL_INTERVAL_S,
        history_max_entries: int = HISTORY_MAX_ENTRIES,
        power_event_max_entries: int = POWER_EVENT_MAX_ENTRIES,
    ) -> None:
        self._engine = engine
        self._interval_s = interval_s
        self._history_max_entries = history_max_entries
        self._power_event_max_entries = power_event_max_entries
        self._privileged_access: bool | None = None
        self.cell = SnapshotCell()

    # -- refresh ------------------------------------------------------------

    async def refresh(self) -> BatterySnapshot:
        """Build a full snapshot and publish it."""
        snapshot = await self._engine.build_snapshot()
        self.cell.publish(snapshot)
        return snapshot

    async def set_privileged_access(self, granted: bool) -> BatterySnapshot | None:
        """Record the privileged-access state; refresh when it changes.

        Returns:
            The new snapshot when a refresh ran, otherwise None.
        """
        changed = granted != self._privileged_access
        self._privileged_access = granted
        if not changed:
            return None
        logger.info("Privileged access %s, refreshing", "granted" if granted else "revoked")
        return await self.refresh()

    # -- live feed ----------------------------------------------------------

    @cached_property
    def _live_feed(self) -> LiveFeed:
        logger.info("Live feed started (interval=%ss)", self._interval_s)
        return LiveFeed(asyncio.create_task(self._live_loop(), name="sambat-live-feed"))

    def start_live(self) -> LiveFeed:
        """Start the live feed, or return the feed already running."""
        return self._live_feed

    async def stop_live(self) -> None:
        """Stop the live feed if it was started."""
        feed = self.__dict__.pop("_live_feed", None)
        if feed is not None:
            await feed.stop()
            logger.info("Live feed stopped")

    async def tick(self) -> None:
        """Run one live update.  Never raises."""
        if self.cell.value is None:
            return
        try:
            live = await self._engine.sample_live()
        except Exception:
            logger.error("Live sample error", exc_info=True)
            return
        latest = self.cell.value
        if latest is not None:
            self.cell.publish(merge_live(latest, live))

    async def _live_loop(self) -> None:
        while True:
            await asyncio.shield(self.tick())
            await asyncio.sleep(self._interval_s)

    # -- detail view --------------------------------------------------------

    def details(self) -> CategorizedDiagnostics:
        """Categorize the current snapshot's dump with live values overlaid."""
        snapshot = self.cell.value
        if snapshot is None:
            return parse_diagnostics("")
        diagnostics = parse_diagnostics(
            snapshot.raw_diagnostic_dump,
            history_max_entries=self._history_max_entries,
            power_event_max_entries=self._power_event_max_entries,
        )
        return overlay_live(diagnostics, live_from_snapshot(snapshot))
