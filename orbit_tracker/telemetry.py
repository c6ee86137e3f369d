"""
Live telemetry sampling.

Combines one propagation and one frame conversion into a TelemetryRecord for the
current instant. A failed propagation yields no record; the caller keeps the
previous one on display.
"""

import logging
from datetime import datetime
from typing import Optional

from orbit_tracker.clock import Clock, utc_now
from orbit_tracker.frames import teme_to_geodetic
from orbit_tracker.models import TelemetryRecord
from orbit_tracker.propagator import PropagationError, Propagator

logger = logging.getLogger(__name__)


def normalize_longitude(longitude_deg: float) -> float:
    """
    Wrap a longitude into (-180, 180].

    normalize_longitude(L) == normalize_longitude(L + 360 * k) for any integer k.
    """
    wrapped = longitude_deg % 360.0
    if wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


class TelemetrySampler:
    """Produces TelemetryRecords for one element set."""

    def __init__(self, propagator: Propagator, clock: Clock = utc_now):
        self.propagator = propagator
        self.clock = clock
        self.failures = 0

    @property
    def record(self):
        return self.propagator.record

    def sample(self, now: Optional[datetime] = None) -> Optional[TelemetryRecord]:
        """
        Sample telemetry at ``now`` (defaults to the injected clock).

        Returns:
            TelemetryRecord, or None when no valid sample exists for that instant
        """
        if now is None:
            now = self.clock()

        try:
            state = self.propagator.propagate(now)
        except PropagationError as e:
            self.failures += 1
            logger.warning(f"No telemetry for {self.record.name}: {e}")
            return None

        position = teme_to_geodetic(state.position_km, state.epoch)

        return TelemetryRecord(
            name=self.record.name,
            norad_id=self.record.norad_id,
            latitude_deg=position.latitude_deg,
            longitude_deg=normalize_longitude(position.longitude_deg),
            altitude_km=position.altitude_km,
            speed_kms=state.speed_kms,
            timestamp=state.epoch,
        )
