"""
Tests for the Update Scheduler

Exercises the cancellation guarantee: once stop()/cancel() returns, no further
ticks are observable.

Run with:
    python -m pytest tests/test_scheduler.py -v
"""

import threading
import time
import unittest
from types import SimpleNamespace

from orbit_tracker.scheduler import RecurringTask, SchedulerState, UpdateScheduler

INTERVAL = 0.02


class FakeSampler:
    def __init__(self, values=None):
        self.calls = 0
        self.values = values

    def sample(self):
        self.calls += 1
        if self.values is not None:
            return self.values(self.calls)
        return f"sample-{self.calls}"


class FakeSession:
    """Minimal stand-in for TrackingSession."""

    def __init__(self, name, sampler=None, on_publish=None):
        self.record = SimpleNamespace(name=name, norad_id=0)
        self.task = None
        self.sampler = sampler or FakeSampler()
        self.published = []
        self.on_publish = on_publish
        self.event = threading.Event()

    def publish_telemetry(self, record):
        self.published.append(record)
        if self.on_publish is not None:
            self.on_publish(self, record)
        self.event.set()


class TestRecurringTask(unittest.TestCase):
    """Test the cancellable timer handle."""

    def test_ticks_until_cancelled(self):
        calls = []
        reached = threading.Event()

        def callback():
            calls.append(time.monotonic())
            if len(calls) >= 3:
                reached.set()

        task = RecurringTask(callback, INTERVAL).start()
        self.assertTrue(reached.wait(2.0))
        task.cancel()
        count = len(calls)

        time.sleep(INTERVAL * 10)
        self.assertEqual(len(calls), count)
        self.assertTrue(task.cancelled)

    def test_first_tick_is_immediate(self):
        fired = threading.Event()
        task = RecurringTask(fired.set, 10.0).start()
        try:
            self.assertTrue(fired.wait(1.0))
        finally:
            task.cancel()

    def test_delayed_first_tick(self):
        fired = threading.Event()
        task = RecurringTask(fired.set, 10.0, run_immediately=False).start()
        try:
            self.assertFalse(fired.wait(0.1))
        finally:
            task.cancel()

    def test_cancel_is_idempotent(self):
        task = RecurringTask(lambda: None, INTERVAL).start()
        task.cancel()
        task.cancel()
        self.assertTrue(task.cancelled)

    def test_cancel_before_start(self):
        calls = []
        task = RecurringTask(lambda: calls.append(1), INTERVAL)
        task.cancel()
        task.start()
        time.sleep(INTERVAL * 5)
        self.assertEqual(calls, [])

    def test_callback_errors_do_not_stop_ticks(self):
        calls = []
        reached = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("observer failed")
            reached.set()

        with self.assertLogs("orbit_tracker.scheduler", level="ERROR"):
            task = RecurringTask(callback, INTERVAL).start()
            self.assertTrue(reached.wait(2.0))
            task.cancel()

    def test_cancel_from_inside_callback(self):
        calls = []
        holder = {}

        def callback():
            calls.append(1)
            holder["task"].cancel()

        holder["task"] = RecurringTask(callback, INTERVAL)
        holder["task"].start()
        time.sleep(INTERVAL * 10)

        self.assertEqual(calls, [1])

    def test_invalid_interval(self):
        with self.assertRaises(ValueError):
            RecurringTask(lambda: None, 0)


class TestUpdateScheduler(unittest.TestCase):
    """Test the Stopped/Running state machine."""

    def setUp(self):
        """Set up test fixtures."""
        self.scheduler = UpdateScheduler(INTERVAL)

    def tearDown(self):
        self.scheduler.stop()

    def test_initial_state_is_stopped(self):
        self.assertEqual(self.scheduler.state, SchedulerState.STOPPED)
        self.assertIsNone(self.scheduler.session)

    def test_start_and_stop(self):
        session = FakeSession("A")

        task = self.scheduler.start(session)
        self.assertIs(session.task, task)
        self.assertEqual(self.scheduler.state, SchedulerState.RUNNING)
        self.assertIs(self.scheduler.session, session)
        self.assertTrue(session.event.wait(2.0))

        self.scheduler.stop()
        self.assertEqual(self.scheduler.state, SchedulerState.STOPPED)
        self.assertTrue(task.cancelled)

    def test_stop_is_idempotent(self):
        self.scheduler.stop()
        self.scheduler.start(FakeSession("A"))
        self.scheduler.stop()
        self.scheduler.stop()
        self.assertEqual(self.scheduler.state, SchedulerState.STOPPED)

    def test_no_emissions_after_stop(self):
        """Repeated start/stop cycles never leak a tick past stop()."""
        for i in range(10):
            session = FakeSession(f"S{i}")
            self.scheduler.start(session)
            session.event.wait(1.0)
            self.scheduler.stop()
            count = len(session.published)
            time.sleep(INTERVAL * 3)
            self.assertEqual(len(session.published), count)

    def test_each_tick_replaces_sample(self):
        session = FakeSession("A")
        self.scheduler.start(session)
        deadline = time.monotonic() + 2.0
        while len(session.published) < 3 and time.monotonic() < deadline:
            time.sleep(INTERVAL)
        self.scheduler.stop()

        self.assertEqual(session.published[:3], ["sample-1", "sample-2", "sample-3"])

    def test_failed_sample_is_not_published(self):
        """None from the sampler leaves the previous telemetry in place."""
        sampler = FakeSampler(values=lambda n: "good" if n == 1 else None)
        session = FakeSession("A", sampler=sampler)

        self.scheduler.start(session)
        self.assertTrue(session.event.wait(2.0))
        time.sleep(INTERVAL * 5)
        self.scheduler.stop()

        self.assertGreater(sampler.calls, 1)
        self.assertEqual(session.published, ["good"])

    def test_start_supersedes_running_session(self):
        """The old timer is cancelled before the new session's first tick."""
        first = FakeSession("first")
        first_task = self.scheduler.start(first)
        self.assertTrue(first.event.wait(2.0))

        observed = []
        second = FakeSession("second", on_publish=lambda s, r: observed.append(first_task.cancelled))
        self.scheduler.start(second)
        self.assertTrue(second.event.wait(2.0))

        first_count = len(first.published)
        time.sleep(INTERVAL * 5)

        self.assertEqual(len(first.published), first_count)
        self.assertTrue(all(observed))
        self.assertIs(self.scheduler.session, second)

    def test_stop_from_observer(self):
        """An observer may stop the scheduler from inside a tick."""
        scheduler = self.scheduler
        session = FakeSession("A", on_publish=lambda s, r: scheduler.stop())

        scheduler.start(session)
        self.assertTrue(session.event.wait(2.0))
        time.sleep(INTERVAL * 5)

        self.assertEqual(scheduler.state, SchedulerState.STOPPED)
        self.assertEqual(len(session.published), 1)

    def test_invalid_interval(self):
        with self.assertRaises(ValueError):
            UpdateScheduler(-1.0)


if __name__ == "__main__":
    unittest.main()
