"""
Collaborator contracts for the battery engine.

The engine never touches the operating system directly.  Every ambient
source is reached through one of the structural interfaces below:

- :class:`BroadcastSource` -- sticky battery broadcast snapshot.
- :class:`BatteryService` -- battery-info integer properties.
- :class:`ShellExecutor` -- privileged shell (diagnostic dump).
- :class:`CapacityLookup` -- platform-internal rated-capacity lookup.
- :class:`FileProbe` -- read-only access to diagnostic files.

Portable implementations live here as well: the capacity-lookup stub used
when no platform facility is present, a configured static capacity, and a
pathlib file probe.

CHANGELOG:
- 2026-10-19: Add StaticCapacityLookup for configured design capacity (STORY-012)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable


class CollaboratorUnavailableError(Exception):
    """Raised by stub collaborators that have no backing platform facility."""


# ---------------------------------------------------------------------------
# Broadcast snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatteryBroadcast:
    """Immutable view of the extras carried by a battery broadcast.

    Args:
        extras: Mapping of extra key -> value as delivered by the platform.
    """

    extras: Mapping[str, object] = field(default_factory=dict)

    def has_extra(self, key: str) -> bool:
        return key in self.extras

    def get_int(self, key: str, default: int) -> int:
        """Return the extra as an int, or *default* if absent or not numeric."""
        value = self.extras.get(key)
        if isinstance(value, bool) or value is None:
            return default
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return default

    def get_str(self, key: str, default: str | None = None) -> str | None:
        value = self.extras.get(key)
        if value is None:
            return default
        return str(value)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class BroadcastSource(Protocol):
    """Synchronous poll of the sticky battery broadcast."""

    def sticky(self) -> BatteryBroadcast | None:
        """Return the latest broadcast, or None when none is available."""
        ...


@runtime_checkable
class BatteryService(Protocol):
    """Battery-info service exposing integer properties."""

    def get_int_property(self, prop_id: int) -> int:
        """Return the property value.

        Returns ``INT_MIN`` for unsupported properties and may raise
        :class:`PermissionError` for restricted ones.
        """
        ...


@runtime_checkable
class ShellExecutor(Protocol):
    """Elevated shell used to obtain the diagnostic dump."""

    def is_available(self) -> bool:
        """Permission / binder-liveness gate, evaluated by the caller."""
        ...

    async def execute(self, command: str) -> str:
        """Run *command*; return its output or an ``Error:``/``Exception:`` string."""
        ...


@runtime_checkable
class CapacityLookup(Protocol):
    """Platform-internal rated-capacity lookup (version-fragile)."""

    def battery_capacity(self) -> float:
        """Return the vendor-declared capacity in mAh; raise on any failure."""
        ...


@runtime_checkable
class FileProbe(Protocol):
    """Read-only access to diagnostic files."""

    def read_text(self, path: str) -> str:
        """Return the file contents; raise :class:`OSError` on failure."""
        ...


# ---------------------------------------------------------------------------
# Portable implementations
# ---------------------------------------------------------------------------


class UnavailableCapacityLookup:
    """Capacity lookup for hosts without a platform capability facility."""

    def battery_capacity(self) -> float:
        raise CollaboratorUnavailableError("platform capacity lookup not available")


class StaticCapacityLookup:
    """Capacity lookup returning a configured rated capacity.

    Args:
        capacity_mah: Rated capacity in mAh.  Non-positive values are
            rejected at lookup time so the resolver falls back to -1.
    """

    def __init__(self, capacity_mah: float) -> None:
        self._capacity_mah = capacity_mah

    def battery_capacity(self) -> float:
        if self._capacity_mah <= 0:
            raise CollaboratorUnavailableError("no design capacity configured")
        return float(self._capacity_mah)


class LocalFileProbe:
    """File probe reading from the local filesystem."""

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")
