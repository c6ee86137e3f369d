"""
Ground path sampling around a center instant.

Produces ``count`` evenly spaced samples from ``-count // 2 * step`` to
``(count - 1 - count // 2) * step`` seconds relative to ``now``. Epochs that
fail to propagate are omitted, so the path may contain gaps but is never
abandoned as a whole.

Longitudes are left in raw form; antimeridian handling belongs to the renderer.
"""

import logging
from datetime import datetime, timedelta
from typing import List

from orbit_tracker.clock import ensure_utc
from orbit_tracker.frames import teme_to_geodetic
from orbit_tracker.models import PathSample
from orbit_tracker.propagator import Propagator

logger = logging.getLogger(__name__)

DEFAULT_PATH_POINTS = 360
DEFAULT_STEP_SECONDS = 60.0


def path_epochs(now: datetime, count: int = DEFAULT_PATH_POINTS,
                step_seconds: float = DEFAULT_STEP_SECONDS) -> List[datetime]:
    """Evenly spaced epochs centered on ``now``, in increasing order."""
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    if step_seconds <= 0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")

    half = count // 2
    return [now + timedelta(seconds=(i - half) * step_seconds) for i in range(count)]


def sample_path(propagator: Propagator, now: datetime, count: int = DEFAULT_PATH_POINTS,
                step_seconds: float = DEFAULT_STEP_SECONDS) -> PathSample:
    """
    Sample the ground path of the propagator's object around ``now``.

    Args:
        propagator: Propagator for the tracked element set
        now: Center instant
        count: Number of requested samples
        step_seconds: Spacing between samples

    Returns:
        PathSample with at most ``count`` points ordered by epoch
    """
    now = ensure_utc(now)
    epochs = path_epochs(now, count, step_seconds)

    points = []
    kept_epochs = []
    for result in propagator.propagate_many(epochs):
        if result.state is None:
            logger.debug(f"Skipping path epoch {result.epoch.isoformat()}: {result.error}")
            continue
        points.append(teme_to_geodetic(result.state.position_km, result.epoch))
        kept_epochs.append(result.epoch)

    dropped = count - len(points)
    if dropped:
        logger.warning(
            f"Path for {propagator.record.name}: {dropped} of {count} epochs failed to propagate"
        )

    return PathSample(
        center=now,
        step_seconds=step_seconds,
        requested_points=count,
        points=tuple(points),
        epochs=tuple(kept_epochs),
    )
