"""
Wait Time Tracker - Interval Scheduler Unit Tests
"""

from threading import Event
from unittest.mock import Mock

import pytest

from collector.scheduler import IntervalScheduler


class CountingOrchestrator:
    """Records ticks and signals after ``target`` of them."""

    def __init__(self, target=1, error=None):
        self.ticks = 0
        self.target = target
        self.error = error
        self.reached = Event()

    def tick(self):
        self.ticks += 1
        if self.ticks >= self.target:
            self.reached.set()
        if self.error is not None:
            raise self.error


class TestIntervalScheduler:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            IntervalScheduler(Mock(), interval_seconds=0)

    def test_first_tick_is_immediate(self):
        orchestrator = CountingOrchestrator(target=1)
        scheduler = IntervalScheduler(orchestrator, interval_seconds=60)

        scheduler.start()
        try:
            assert orchestrator.reached.wait(5)
        finally:
            scheduler.stop(timeout=5)

        assert orchestrator.ticks == 1
        assert scheduler.is_running is False

    def test_ticks_repeat_on_interval(self):
        orchestrator = CountingOrchestrator(target=3)
        scheduler = IntervalScheduler(orchestrator, interval_seconds=0.01)

        scheduler.start()
        try:
            assert orchestrator.reached.wait(5)
        finally:
            scheduler.stop(timeout=5)

    def test_delayed_start_waits_one_interval(self):
        orchestrator = CountingOrchestrator()
        scheduler = IntervalScheduler(orchestrator, interval_seconds=60, run_immediately=False)

        scheduler.start()
        scheduler.stop(timeout=5)

        assert orchestrator.ticks == 0

    def test_unexpected_error_keeps_loop_alive(self, app_logs):
        orchestrator = CountingOrchestrator(target=2, error=RuntimeError("boom"))
        scheduler = IntervalScheduler(orchestrator, interval_seconds=0.01)

        scheduler.start()
        try:
            assert orchestrator.reached.wait(5)
        finally:
            scheduler.stop(timeout=5)

        assert any('Unexpected error in scheduled refresh' in r.getMessage() for r in app_logs.records)

    def test_start_twice_is_noop(self):
        orchestrator = CountingOrchestrator()
        scheduler = IntervalScheduler(orchestrator, interval_seconds=60)

        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        try:
            assert scheduler._thread is thread
        finally:
            scheduler.stop(timeout=5)
