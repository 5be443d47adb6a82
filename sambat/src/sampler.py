"""
Realtime sampler for the live battery metrics.

Reads voltage, temperature, level, status and plugged codes from the sticky
battery broadcast and the raw current from the battery-info service, then
maps the codes to a semantic state and normalizes the current magnitude.

An absent broadcast is not an error: every broadcast-derived field falls
back to zero / unknown.  A failing current read degrades to magnitude 0.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sambat.src import codes
from sambat.src.models import LiveSample, RealtimeReading
from sambat.src.normalizer import (
    CURRENT_UNIT_THRESHOLD,
    apply_sign,
    map_status,
    normalize_current_magnitude,
)

if TYPE_CHECKING:
    from sambat.src.sources import BatteryService, BroadcastSource

logger = logging.getLogger(__name__)


class RealtimeSampler:
    """Samples one :class:`RealtimeReading` per call.

    Args:
        broadcast: Source of the sticky battery broadcast.
        service: Battery-info service for the raw current.
        current_unit_threshold: Magnitude above which the raw current is
            treated as microamps.
    """

    def __init__(
        self,
        broadcast: BroadcastSource,
        service: BatteryService,
        *,
        current_unit_threshold: int = CURRENT_UNIT_THRESHOLD,
    ) -> None:
        self._broadcast = broadcast
        self._service = service
        self._current_unit_threshold = current_unit_threshold

    def sample(self) -> RealtimeReading:
        """Take one reading.  Never raises."""
        voltage = temperature = level = 0
        status_code = plugged_code = -1

        try:
            snapshot = self._broadcast.sticky()
        except Exception:
            logger.warning("Battery broadcast read failed", exc_info=True)
            snapshot = None

        if snapshot is not None:
            voltage = snapshot.get_int(codes.EXTRA_VOLTAGE, 0)
            temperature = snapshot.get_int(codes.EXTRA_TEMPERATURE, 0)
            level = snapshot.get_int(codes.EXTRA_LEVEL, 0)
            status_code = snapshot.get_int(codes.EXTRA_STATUS, -1)
            plugged_code = snapshot.get_int(codes.EXTRA_PLUGGED, -1)

        try:
            raw_current = self._service.get_int_property(
                codes.PROPERTY_CURRENT_NOW.prop_id
            )
        except Exception:
            logger.warning("Current read failed, reporting 0 mA", exc_info=True)
            raw_current = codes.INT_MIN

        return RealtimeReading(
            voltage_mv=voltage,
            current_magnitude_ma=normalize_current_magnitude(
                raw_current, threshold=self._current_unit_threshold
            ),
            temperature_dc=temperature,
            level_pct=level,
            status=map_status(status_code, plugged_code),
        )

    def sample_live(self) -> LiveSample:
        """Take one reading and apply the sign convention."""
        return apply_sign(self.sample())
