"""
Wait Time Tracker - Interval Scheduler
Calls RefreshOrchestrator.tick() on a fixed interval from a daemon thread.

Stopping the scheduler only ends the loop: a tick already in progress is
left to finish (or fail) on its own.
"""

from threading import Event, Thread
from typing import Optional

from collector.refresh_orchestrator import RefreshOrchestrator
from utils.config import REFRESH_INTERVAL_SECONDS
from utils.logger import logger


class IntervalScheduler:
    """
    Fixed-interval driver for scheduled refreshes.

    The first tick runs immediately on start(), matching a dashboard that
    loads data on mount and then every interval.
    """

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        interval_seconds: float = REFRESH_INTERVAL_SECONDS,
        run_immediately: bool = True
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._loop, name='refresh-scheduler', daemon=True)
        self._thread.start()
        logger.info(f"Refresh scheduler started (interval={self.interval_seconds}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop scheduling new ticks.

        Args:
            timeout: Seconds to wait for the loop thread; None returns at once
        """
        self._stop.set()
        if self._thread is not None and timeout is not None:
            self._thread.join(timeout)
        logger.info("Refresh scheduler stopped")

    def _loop(self) -> None:
        if not self.run_immediately and self._stop.wait(self.interval_seconds):
            return
        while not self._stop.is_set():
            try:
                self.orchestrator.tick()
            except Exception as e:
                # tick() already absorbs upstream failures; keep the loop alive on anything else
                logger.error(f"Unexpected error in scheduled refresh: {e}", exc_info=True)
            if self._stop.wait(self.interval_seconds):
                break
