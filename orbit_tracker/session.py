"""
Tracking session lifecycle.

A TrackingManager owns the single active TrackingSession. Starting a new session
supersedes the old one: the old timer is fully cancelled before the new path is
published and the new timer is armed.

Usage:
    manager = TrackingManager(on_telemetry=show_telemetry, on_path=draw_path)
    session = manager.start_tracking(tle_text)
    ...
    manager.stop_tracking(session)
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Optional

from orbit_tracker.clock import Clock, ShiftedClock, ensure_utc, utc_now
from orbit_tracker.config import TrackerSettings
from orbit_tracker.models import OrbitalElementRecord, PathSample, TelemetryRecord
from orbit_tracker.path_sampler import sample_path
from orbit_tracker.propagator import PropagationError, Propagator
from orbit_tracker.scheduler import RecurringTask, UpdateScheduler, current_task
from orbit_tracker.telemetry import TelemetrySampler
from orbit_tracker.tle_parser import InvalidTleFormat, parse_tle_text

logger = logging.getLogger(__name__)

TelemetryObserver = Callable[[TelemetryRecord], None]
PathObserver = Callable[[PathSample], None]


class TrackingSession:
    """One tracked element set with its path and latest telemetry."""

    def __init__(self, record: OrbitalElementRecord, propagator: Propagator,
                 sampler: TelemetrySampler, path: PathSample,
                 telemetry: Optional[TelemetryRecord] = None,
                 on_telemetry: Optional[TelemetryObserver] = None):
        self.session_id = uuid.uuid4().hex
        self.record = record
        self.propagator = propagator
        self.sampler = sampler
        self.path = path
        self.task: Optional[RecurringTask] = None
        self._on_telemetry = on_telemetry
        self._lock = threading.Lock()
        self._telemetry = telemetry

    @property
    def current_telemetry(self) -> Optional[TelemetryRecord]:
        with self._lock:
            return self._telemetry

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.cancelled

    def publish_telemetry(self, record: TelemetryRecord) -> None:
        """Replace the current telemetry and notify the observer."""
        with self._lock:
            self._telemetry = record
        if self._on_telemetry is not None:
            self._on_telemetry(record)

    def __repr__(self) -> str:
        state = "running" if self.is_running else "stopped"
        return f"<TrackingSession {self.session_id[:8]} {self.record.name!r} {state}>"


class TrackingManager:
    """Creates, supersedes and stops tracking sessions (one active at a time)."""

    def __init__(self, settings: Optional[TrackerSettings] = None, clock: Clock = utc_now,
                 on_telemetry: Optional[TelemetryObserver] = None,
                 on_path: Optional[PathObserver] = None):
        self.settings = settings or TrackerSettings()
        self.clock = clock
        self.on_telemetry = on_telemetry
        self.on_path = on_path
        self.scheduler = UpdateScheduler(self.settings.update_interval_s)
        # Serializes supersede/stop; held across stop, path publication and start
        self._lifecycle_lock = threading.RLock()
        # Guards the active-session pointer only
        self._lock = threading.Lock()
        self._active: Optional[TrackingSession] = None

    @property
    def active_session(self) -> Optional[TrackingSession]:
        with self._lock:
            return self._active

    def start_tracking(self, tle_text: str, now: Optional[datetime] = None) -> TrackingSession:
        """
        Parse ``tle_text`` and start tracking it.

        Args:
            tle_text: Two- or three-line TLE text
            now: Session start instant (default: the manager's clock). When
                given, the periodic ticks keep the same offset from the
                manager's clock, so they continue from ``now`` rather than
                jumping back to the clock's reading.

        Returns:
            The new, running TrackingSession

        Raises:
            InvalidTleFormat: the text is not a valid TLE; no session is created
            PropagationError: neither the start instant nor any path epoch
                could be propagated; no session is created
        """
        try:
            record = parse_tle_text(tle_text)
        except InvalidTleFormat as e:
            logger.warning(f"Rejected TLE: {e}")
            raise

        if now is None:
            now = self.clock()
            clock = self.clock
        else:
            now = ensure_utc(now)
            clock = ShiftedClock(self.clock, now - self.clock())

        propagator = Propagator(record, self.settings.max_epoch_age_days)
        sampler = TelemetrySampler(propagator, clock)
        path = sample_path(propagator, now, self.settings.path_points, self.settings.path_step_s)
        telemetry = sampler.sample(now)

        if telemetry is None and not path.points:
            raise PropagationError(
                f"no valid state for {record.name} around session start",
                epoch=now,
            )

        session = TrackingSession(
            record, propagator, sampler, path,
            telemetry=telemetry,
            on_telemetry=self.on_telemetry,
        )

        with self._lifecycle_lock:
            self._stop(None)

            if self.on_path is not None:
                try:
                    self.on_path(path)
                except Exception:
                    logger.exception(f"Path observer failed for {record.name}")

            with self._lock:
                self._active = session
            self.scheduler.start(session)

        logger.info(
            f"Tracking {record.name} (NORAD {record.norad_id}), "
            f"path {len(path.points)}/{path.requested_points} points"
        )
        return session

    def stop_tracking(self, session: Optional[TrackingSession] = None) -> None:
        """
        Stop ``session`` (default: the active one). Idempotent.
        """
        if current_task() is not None:
            # Called from a tick; another thread may hold the lifecycle lock
            # while it waits for this very tick to finish
            self._stop(session)
            return

        with self._lifecycle_lock:
            self._stop(session)

    def _stop(self, session: Optional[TrackingSession]) -> None:
        with self._lock:
            target = session if session is not None else self._active
            if target is None:
                return
            if self._active is target:
                self._active = None

        was_running = target.is_running
        if self.scheduler.session is target:
            self.scheduler.stop()
        elif target.task is not None:
            target.task.cancel()

        if was_running:
            logger.info(f"Stopped tracking {target.record.name}")
