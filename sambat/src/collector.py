"""
Privileged diagnostic-dump collector.

Runs the battery diagnostic command (and the batterystats capacity grep)
through the elevated shell collaborator, each bounded by a timeout, and
extracts the vendor fields the public API does not expose:

- ``mSavedBatteryUsage: [28600]`` -> usage cycles = 28600 / 100.
- ``Cycle count: 412`` -> explicit cycle count.
- ``Charge counter: 3600000`` -> raw charge counter (unit normalized later).
- ``health: 2`` / ``technology: Li-ion`` -> overrides.

Failures never propagate: a timed-out, failing or unavailable shell yields
an empty :class:`PrivilegedData`, and a missing key leaves its field at -1.

CHANGELOG:
- 2026-10-19: Treat Error:/Exception: shell output as unavailable (STORY-010)
- 2026-10-19: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING

from sambat.src.codes import CAPACITY_COMMAND, DUMP_COMMAND
from sambat.src.models import PrivilegedData
from sambat.src.normalizer import map_health

if TYPE_CHECKING:
    from sambat.src.sources import ShellExecutor

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SHELL_TIMEOUT_S: float = 5.0
"""Upper bound for a single privileged shell command."""

USAGE_KEY = "mSavedBatteryUsage:"
"""Samsung usage counter, hundredths of a full cycle."""

_ERROR_PREFIXES = ("Error:", "Exception:")
_BRACKETED_INT = re.compile(r"\[\s*(-?\d+)\s*\]")
_FIRST_INT = re.compile(r"-?\d+")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _value_after_colon(line: str) -> str:
    return line.split(":", 1)[1].strip()


def _parse_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def parse_usage_counter(value: str) -> int | None:
    """Extract the usage counter from the text after ``mSavedBatteryUsage:``.

    A bracketed numeral (``[28600]``) is preferred; otherwise the first
    integer in the text is used.
    """
    bracketed = _BRACKETED_INT.search(value)
    if bracketed is not None:
        return int(bracketed.group(1))
    first = _FIRST_INT.search(value)
    return int(first.group(0)) if first is not None else None


def parse_privileged_dump(raw_dump: str, capacity_dump: str = "") -> PrivilegedData:
    """Extract the vendor fields from a diagnostic dump.

    Line-oriented, key-prefix matching on trimmed lines.  Keys are
    case-sensitive except ``Charge counter:``.  The first occurrence of each
    key wins; malformed values are ignored.
    """
    usage_cycles = cycle_count = charge_counter = -1
    health = None
    technology = None

    for line in raw_dump.splitlines():
        trimmed = line.strip()

        if trimmed.startswith(USAGE_KEY) and usage_cycles < 0:
            usage = parse_usage_counter(_value_after_colon(trimmed))
            if usage is not None and usage > 0:
                usage_cycles = usage // 100
        elif trimmed.startswith("Cycle count:") and cycle_count < 0:
            value = _parse_int(_value_after_colon(trimmed))
            if value is not None:
                cycle_count = value
        elif trimmed.lower().startswith("charge counter:") and charge_counter < 0:
            value = _parse_int(_value_after_colon(trimmed))
            if value is not None:
                charge_counter = value
        elif trimmed.startswith("health:") and health is None:
            value = _parse_int(_value_after_colon(trimmed))
            if value is not None:
                health = map_health(value)
        elif trimmed.startswith("technology:") and technology is None:
            value_text = _value_after_colon(trimmed)
            if value_text:
                technology = value_text

    return PrivilegedData(
        raw_dump=raw_dump,
        capacity_dump=capacity_dump,
        usage_cycles=usage_cycles,
        cycle_count=cycle_count,
        charge_counter_raw=charge_counter,
        health=health,
        technology=technology,
    )


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


async def _run(shell: ShellExecutor, command: str, timeout_s: float) -> str:
    """Run one command, returning "" on timeout, error string or exception."""
    try:
        output = await asyncio.wait_for(shell.execute(command), timeout=timeout_s)
    except TimeoutError:
        logger.warning("Privileged command timed out after %.1fs: %s", timeout_s, command)
        return ""
    except Exception:
        logger.warning("Privileged command failed: %s", command, exc_info=True)
        return ""

    if output.startswith(_ERROR_PREFIXES):
        logger.warning("Privileged command returned an error: %s", output.strip()[:200])
        return ""
    return output


class PrivilegedDataCollector:
    """Collects and parses the privileged diagnostic dump.

    Args:
        shell: Elevated shell collaborator.
        timeout_s: Timeout applied to each shell command.
    """

    def __init__(self, shell: ShellExecutor, *, timeout_s: float = SHELL_TIMEOUT_S) -> None:
        self._shell = shell
        self._timeout_s = timeout_s

    def is_available(self) -> bool:
        """Return the shell's availability gate; False if the check itself fails."""
        try:
            return bool(self._shell.is_available())
        except Exception:
            logger.warning("Privileged shell availability check failed", exc_info=True)
            return False

    async def collect(self) -> PrivilegedData:
        """Run the diagnostic commands and extract what they contain.

        Returns:
            A :class:`PrivilegedData`, empty when nothing could be collected.
        """
        if not self.is_available():
            logger.info("Privileged shell not available, skipping diagnostic dump")
            return PrivilegedData()

        raw_dump = await _run(self._shell, DUMP_COMMAND, self._timeout_s)
        capacity_dump = await _run(self._shell, CAPACITY_COMMAND, self._timeout_s)
        data = parse_privileged_dump(raw_dump, capacity_dump)
        logger.debug(
            "Privileged dump: usage_cycles=%d cycle_count=%d charge_counter_raw=%d",
            data.usage_cycles,
            data.cycle_count,
            data.charge_counter_raw,
        )
        return data
