"""
SGP4 Propagation

Propagates an OrbitalElementRecord to arbitrary epochs with the reference sgp4
library, so near-Earth/deep-space branching and drag terms match the published
SGP4 behaviour exactly.

A failed epoch raises PropagationError; callers skip that epoch instead of
substituting stale or zero data. Epochs far from the element set epoch are
refused up front (EpochOutOfRange) because SGP4 still returns numbers there,
just meaningless ones.

Note: TLE data should be kept current (updated at least weekly for LEO
satellites, less frequently for higher orbits).
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence

import numpy as np
from sgp4.api import Satrec

from orbit_tracker.clock import ensure_utc
from orbit_tracker.frames import datetime_to_jd_fr
from orbit_tracker.models import OrbitalElementRecord, StateVector

logger = logging.getLogger(__name__)

DEFAULT_MAX_EPOCH_AGE_DAYS = 30.0

# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class PropagationError(RuntimeError):
    """SGP4 could not produce a valid state at one epoch."""

    def __init__(self, reason: str, code: Optional[int] = None, epoch: Optional[datetime] = None):
        self.reason = reason
        self.code = code
        self.epoch = epoch
        prefix = f"SGP4 error {code}: " if code is not None else ""
        when = f" at {epoch.isoformat()}" if epoch is not None else ""
        super().__init__(f"{prefix}{reason}{when}")


class EpochOutOfRange(PropagationError):
    """Requested epoch is too far from the element set epoch to trust."""


class BatchResult(NamedTuple):
    """Per-epoch outcome of Propagator.propagate_many; state is None on failure."""

    epoch: datetime
    state: Optional[StateVector]
    error: Optional[PropagationError]


class Propagator:
    """
    SGP4 propagator bound to one element record.

    The Satrec is built once; propagation is a pure function of the epoch, so a
    Propagator can be shared between the telemetry sampler and the path sampler.
    """

    def __init__(self, record: OrbitalElementRecord,
                 max_epoch_age_days: float = DEFAULT_MAX_EPOCH_AGE_DAYS):
        """
        Initialize Propagator.

        Args:
            record: Parsed element set
            max_epoch_age_days: Largest |epoch - TLE epoch| accepted, in days
        """
        self.record = record
        self.max_epoch_age = timedelta(days=max_epoch_age_days)
        self.satellite = Satrec.twoline2rv(record.line1, record.line2)

    def propagate(self, epoch: datetime) -> StateVector:
        """
        Propagate to one epoch.

        Args:
            epoch: Target time; naive values are taken as UTC

        Returns:
            StateVector in TEME, km and km/s

        Raises:
            EpochOutOfRange: epoch outside the trusted span
            PropagationError: SGP4 reported an error or returned non-finite values
        """
        epoch = ensure_utc(epoch)
        self._check_epoch(epoch)

        jd, fr = datetime_to_jd_fr(epoch)
        error, position, velocity = self.satellite.sgp4(jd, fr)

        return self._to_state(epoch, error, position, velocity)

    def propagate_many(self, epochs: Iterable[datetime]) -> List[BatchResult]:
        """
        Propagate a batch of epochs with the vectorised sgp4_array call.

        Failures are isolated to their own epoch; the batch itself never raises
        for a propagation problem.
        """
        epochs = [ensure_utc(e) for e in epochs]
        if not epochs:
            return []

        jd = np.empty(len(epochs))
        fr = np.empty(len(epochs))
        for i, epoch in enumerate(epochs):
            jd[i], fr[i] = datetime_to_jd_fr(epoch)

        errors, positions, velocities = self.satellite.sgp4_array(jd, fr)

        results = []
        for i, epoch in enumerate(epochs):
            try:
                self._check_epoch(epoch)
                state = self._to_state(epoch, int(errors[i]), positions[i], velocities[i])
            except PropagationError as e:
                results.append(BatchResult(epoch, None, e))
            else:
                results.append(BatchResult(epoch, state, None))
        return results

    def _check_epoch(self, epoch: datetime) -> None:
        age = self.record.age_at(epoch)
        if abs(age) > self.max_epoch_age:
            raise EpochOutOfRange(
                f"epoch is {age.total_seconds() / 86400.0:+.1f} days from element set epoch "
                f"(limit {self.max_epoch_age.total_seconds() / 86400.0:.1f} days)",
                epoch=epoch,
            )

    def _to_state(self, epoch: datetime, error: int, position: Sequence[float],
                  velocity: Sequence[float]) -> StateVector:
        if error != 0:
            raise PropagationError(
                SGP4_ERROR_CODES.get(error, f"Unknown error code {error}"),
                code=error,
                epoch=epoch,
            )

        r = np.asarray(position, dtype=float)
        v = np.asarray(velocity, dtype=float)
        if not (np.all(np.isfinite(r)) and np.all(np.isfinite(v))):
            raise PropagationError("Non-finite state vector", epoch=epoch)

        return StateVector(
            epoch=epoch,
            position_km=tuple(r.tolist()),
            velocity_kms=tuple(v.tolist()),
        )


def propagate(record: OrbitalElementRecord, epoch: datetime) -> StateVector:
    """Convenience one-shot propagation with default limits."""
    return Propagator(record).propagate(epoch)
