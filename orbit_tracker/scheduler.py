"""
Periodic telemetry updates.

RecurringTask runs a callback on a dedicated thread at a fixed cadence and is
its own cancellation handle. UpdateScheduler owns at most one RecurringTask and
implements the Stopped/Running state machine around it.

Cancellation guarantee: a tick runs while holding the task lock, and cancel()
sets the cancelled flag under that same lock. Once cancel() returns, any tick in
flight has finished and no later tick can start.
"""

import logging
import threading
import time
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from orbit_tracker.session import TrackingSession

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 1.0

_worker_context = threading.local()


def current_task() -> Optional["RecurringTask"]:
    """The RecurringTask whose worker thread is running the caller, if any."""
    return getattr(_worker_context, "task", None)


class SchedulerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class RecurringTask:
    """Cancellable handle for a callback run every ``interval`` seconds."""

    def __init__(self, callback: Callable[[], None], interval: float,
                 run_immediately: bool = True, name: Optional[str] = None):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self._callback = callback
        self.interval = interval
        self.run_immediately = run_immediately
        self.ticks = 0
        self._lock = threading.RLock()
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name or "recurring-task", daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> "RecurringTask":
        self._thread.start()
        return self

    def in_worker_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def cancel(self, timeout: Optional[float] = None) -> None:
        """
        Cancel the task. Idempotent.

        Blocks until a tick in flight has completed, unless called from the
        task's own thread (e.g. by an observer), where it just marks the task
        cancelled.
        """
        with self._lock:
            self._cancelled.set()

        if self.in_worker_thread():
            return
        if self._thread.is_alive():
            self._thread.join(timeout)

    def _run(self) -> None:
        _worker_context.task = self
        next_run = time.monotonic()
        if not self.run_immediately:
            next_run += self.interval

        while True:
            delay = max(0.0, next_run - time.monotonic())
            if self._cancelled.wait(delay):
                return

            with self._lock:
                if self._cancelled.is_set():
                    return
                try:
                    self._callback()
                except Exception:
                    logger.exception(f"Tick of {self._thread.name} failed")
                self.ticks += 1

            next_run += self.interval
            now = time.monotonic()
            if next_run < now:
                # Fell behind; skip the missed ticks instead of bursting
                missed = int((now - next_run) / self.interval) + 1
                next_run += missed * self.interval


class UpdateScheduler:
    """
    Drives telemetry ticks for the active tracking session.

    Observers may call stop() from inside a tick; calling start() from inside a
    tick is not supported.
    """

    def __init__(self, interval_s: float = DEFAULT_INTERVAL_S):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")

        self.interval_s = interval_s
        # Serializes start/stop; held while joining the old worker
        self._lifecycle_lock = threading.Lock()
        # Guards the task/session pointers only; never held while blocking
        self._state_lock = threading.Lock()
        self._task: Optional[RecurringTask] = None
        self._session: Optional["TrackingSession"] = None

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return SchedulerState.RUNNING if self._task is not None else SchedulerState.STOPPED

    @property
    def session(self) -> Optional["TrackingSession"]:
        with self._state_lock:
            return self._session

    def start(self, session: "TrackingSession") -> RecurringTask:
        """
        Start ticking for ``session``.

        Any running task is cancelled first, so at most one timer is live. The
        new handle is attached to ``session.task`` before the first tick.

        Returns:
            The RecurringTask handle owning the new timer
        """
        with self._lifecycle_lock:
            self._cancel_current()

            task = RecurringTask(
                partial(self._tick, session),
                self.interval_s,
                name=f"telemetry-{session.record.norad_id}",
            )
            with self._state_lock:
                self._task = task
                self._session = session
            session.task = task
            task.start()

        logger.info(f"Telemetry updates started for {session.record.name} every {self.interval_s}s")
        return task

    def stop(self) -> None:
        """Stop ticking. Idempotent; a no-op when already stopped."""
        worker = current_task()
        if worker is not None:
            # Called from one of our ticks; the lifecycle lock may be held by a
            # thread that is waiting for this very tick to finish
            with self._state_lock:
                owned = self._task is worker
                if owned:
                    self._task = None
                    self._session = None
            if owned or worker.cancelled:
                worker.cancel()
                return

        with self._lifecycle_lock:
            self._cancel_current()

    def _cancel_current(self) -> None:
        with self._state_lock:
            task, session = self._task, self._session
            self._task = None
            self._session = None

        if task is not None:
            task.cancel()
            logger.info(f"Telemetry updates stopped for {session.record.name}")

    def _tick(self, session: "TrackingSession") -> None:
        record = session.sampler.sample()
        if record is None:
            # Keep the last good telemetry on display
            return
        session.publish_telemetry(record)
