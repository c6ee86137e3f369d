"""
Clock sources.

Every component that needs "now" takes a zero-argument callable returning an
aware UTC datetime, so tests and replays can substitute their own time base.
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Wall-clock time in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self._lock = threading.Lock()
        self._now = ensure_utc(start)

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, when: datetime) -> None:
        with self._lock:
            self._now = ensure_utc(when)

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self._now += timedelta(seconds=seconds)
            return self._now


class OffsetClock:
    """
    Real-time clock starting at an arbitrary instant.

    Useful for replaying an old element set near its own epoch while time still
    flows at the normal rate.
    """

    def __init__(self, start: datetime):
        self._start = ensure_utc(start)
        self._origin = time.monotonic()

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=time.monotonic() - self._origin)


class ShiftedClock:
    """Another clock moved by a fixed offset; it advances whenever the base clock does."""

    def __init__(self, base: Clock, offset: timedelta):
        self.base = base
        self.offset = offset

    def __call__(self) -> datetime:
        return self.base() + self.offset
