"""
Battery monitor daemon entrypoint.

Wires the sysfs adapter, the optional privileged shell and the capacity
lookup into a :class:`BatteryEngine`, performs an initial refresh, starts
the live feed and logs every published snapshot:

- Full refreshes are logged at INFO, live ticks at DEBUG.
- SIGHUP triggers a manual refresh.
- SIGTERM/SIGINT stop the live feed and exit.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-018)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sambat.src.engine import BatteryEngine
from sambat.src.monitor import BatteryMonitor
from sambat.src.shell import SubprocessShell
from sambat.src.sources import StaticCapacityLookup
from sambat.src.sysfs import SysfsBattery

if TYPE_CHECKING:
    from sambat.src.config import EngineSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging for the daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: EngineSettings) -> None:
    """Log the effective configuration at startup."""
    logger.info(
        "Battery monitor starting with config: "
        "poll_interval_s=%s, power_supply_root=%s, "
        "privileged_shell_enabled=%s, shell_prefix=%s, shell_timeout_s=%s, "
        "current_unit_threshold=%s, charge_counter_unit_threshold=%s, "
        "design_capacity_mah=%s, cycle_count_paths=%s",
        settings.poll_interval_s,
        settings.power_supply_root,
        settings.privileged_shell_enabled,
        settings.shell_prefix,
        settings.shell_timeout_s,
        settings.current_unit_threshold,
        settings.charge_counter_unit_threshold,
        settings.design_capacity_mah,
        settings.cycle_count_paths,
    )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_monitor(settings: EngineSettings) -> BatteryMonitor:
    """Construct the engine and monitor described by *settings*."""
    source = SysfsBattery(settings.power_supply_root)
    shell = SubprocessShell(settings.shell_prefix) if settings.privileged_shell_enabled else None
    lookup = (
        StaticCapacityLookup(settings.design_capacity_mah)
        if settings.design_capacity_mah > 0
        else None
    )
    engine = BatteryEngine(
        source,
        source,
        shell=shell,
        capacity_lookup=lookup,
        cycle_count_paths=settings.cycle_count_paths,
        shell_timeout_s=settings.shell_timeout_s,
        current_unit_threshold=settings.current_unit_threshold,
        charge_counter_unit_threshold=settings.charge_counter_unit_threshold,
        default_technology=settings.default_technology,
    )
    return BatteryMonitor(
        engine,
        interval_s=settings.poll_interval_s,
        history_max_entries=settings.history_max_entries,
        power_event_max_entries=settings.power_event_max_entries,
    )


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------


async def _refresh_once(monitor: BatteryMonitor) -> None:
    """Run one refresh; errors are logged, never raised."""
    try:
        await monitor.refresh()
    except Exception:
        logger.error("Refresh error", exc_info=True)


async def _log_updates(monitor: BatteryMonitor) -> None:
    """Log every snapshot published to the monitor's cell."""
    async for snapshot in monitor.cell.updates():
        logger.debug("Snapshot: %s", snapshot.model_dump_json(exclude={"raw_diagnostic_dump"}))


async def run(
    *,
    monitor: BatteryMonitor,
    shutdown_event: asyncio.Event,
    refresh_event: asyncio.Event,
) -> None:
    """Refresh, run the live feed, and serve refresh requests until shutdown.

    Args:
        monitor: The battery monitor.
        shutdown_event: Set to stop the daemon.
        refresh_event: Set to request a full refresh.
    """
    await _refresh_once(monitor)
    monitor.start_live()
    reporter = asyncio.create_task(_log_updates(monitor))

    shutdown_wait = asyncio.create_task(shutdown_event.wait())
    try:
        while not shutdown_event.is_set():
            refresh_wait = asyncio.create_task(refresh_event.wait())
            await asyncio.wait(
                {shutdown_wait, refresh_wait}, return_when=asyncio.FIRST_COMPLETED
            )
            if refresh_event.is_set():
                refresh_event.clear()
                await _refresh_once(monitor)
            refresh_wait.cancel()
    finally:
        shutdown_wait.cancel()
        await monitor.stop_live()
        reporter.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reporter
        logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run until signalled."""
    configure_logging()

    from sambat.src.config import EngineSettings

    settings = EngineSettings()
    log_config_summary(settings)

    shutdown_event = asyncio.Event()
    refresh_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: _handle_signal(shutdown_event))
    loop.add_signal_handler(signal.SIGHUP, refresh_event.set)

    await run(
        monitor=build_monitor(settings),
        shutdown_event=shutdown_event,
        refresh_event=refresh_event,
    )


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event."""
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
