"""
Orbit Tracker Demonstration

Tracks one object from a TLE file (or the built-in ISS fallback element set)
and logs live telemetry until the requested duration has elapsed.

Usage:
    python demo.py [--tle FILE] [--duration SECONDS] [--start ISO8601] [--verbose]

Arguments:
    --tle: Path to a two- or three-line TLE file
    --duration: Seconds to track before stopping (default 10)
    --start: Replay start instant; defaults to the element set epoch so old
             TLEs remain inside their valid span. Use "now" for live tracking.
    --verbose: Enable debug logging
"""

import argparse
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from orbit_tracker.clock import OffsetClock, utc_now
from orbit_tracker.config import FALLBACK_ISS_TLE, TrackerSettings
from orbit_tracker.logging_config import configure_logging, get_logger
from orbit_tracker.models import PathSample, TelemetryRecord
from orbit_tracker.propagator import PropagationError
from orbit_tracker.session import TrackingManager
from orbit_tracker.tle_parser import InvalidTleFormat, parse_tle_text

logger = get_logger(__name__)


def log_telemetry(record: TelemetryRecord) -> None:
    logger.info(
        f"{record.name}: lat {record.latitude_deg:8.3f} deg  lon {record.longitude_deg:8.3f} deg  "
        f"alt {record.altitude_km:7.1f} km  speed {record.speed_kms:6.3f} km/s"
    )


def log_path(path: PathSample) -> None:
    logger.info(
        f"Ground path: {len(path.points)} of {path.requested_points} points, "
        f"{path.step_seconds:.0f}s apart, centered on {path.center.isoformat()}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(description="Orbit Tracker Demonstration")
    parser.add_argument("--tle", type=Path, help="TLE file to track")
    parser.add_argument("--duration", type=float, default=10.0, help="Seconds to track")
    parser.add_argument("--start", default=None, help='Replay start (ISO 8601) or "now"')
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    settings = TrackerSettings.from_env()
    configure_logging(level=logging.DEBUG if args.verbose else settings.log_level)

    tle_text = args.tle.read_text() if args.tle else FALLBACK_ISS_TLE

    try:
        record = parse_tle_text(tle_text)
    except InvalidTleFormat as e:
        logger.error(f"Invalid TLE: {e}")
        return 2

    if args.start == "now":
        clock = utc_now
    elif args.start:
        clock = OffsetClock(datetime.fromisoformat(args.start))
    else:
        clock = OffsetClock(record.epoch)

    manager = TrackingManager(settings, clock=clock, on_telemetry=log_telemetry, on_path=log_path)

    try:
        session = manager.start_tracking(tle_text)
    except PropagationError as e:
        logger.error(f"Cannot track {record.name}: {e}")
        return 1

    try:
        threading.Event().wait(max(0.0, args.duration))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        manager.stop_tracking(session)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
