"""
Wait Time Tracker - Refresh Orchestrator
Runs fetch -> snapshot -> store cycles, one at a time.

Cycle states:
    IDLE -> FETCHING -> MERGING -> IDLE
    IDLE -> FETCHING -> FETCH_FAILED

FETCH_FAILED is the resting state after a failed cycle; it accepts the next
trigger exactly like IDLE.

Only one cycle is ever in flight. A trigger that arrives mid-cycle does not
start a second upstream fetch:
- refresh() (on demand) waits for the in-flight cycle and shares its outcome
- tick() (scheduled) returns immediately without doing anything

A snapshot is all-parks-or-nothing. If any park fetch fails the cycle raises
UpstreamUnavailable and nothing is stored. There is no retry or backoff
at this level; the next tick is a fresh attempt.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from threading import Lock
from typing import Callable, List, Optional, Sequence

from models.snapshot import ParkSnapshot, Snapshot, WaitTimesView
from storage.snapshot_store import SnapshotStore
from utils.logger import (
    log_refresh_coalesced,
    log_refresh_complete,
    log_refresh_error,
    log_refresh_start,
    logger,
)
from utils.timezone import utc_now


class RefreshState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    FETCH_FAILED = "fetch_failed"


class UpstreamUnavailable(Exception):
    """
    A park fetch failed, so the whole refresh cycle was abandoned.

    Attributes:
        park_id: The park whose fetch failed
    """

    def __init__(self, park_id: str, cause: Exception):
        super().__init__(f"Failed to fetch data for park {park_id}: {type(cause).__name__}: {cause}")
        self.park_id = park_id
        self.cause = cause


class RefreshOrchestrator:
    """
    Single-flight refresh coordinator.

    Args:
        client: Anything with ``fetch_park_live(park_id) -> ParkSnapshot``
        store: Snapshot store receiving each new snapshot
        park_ids: Parks fetched every cycle, in snapshot order
        clock: Returns the aware UTC timestamp for new snapshots
    """

    def __init__(
        self,
        client,
        store: SnapshotStore,
        park_ids: Sequence[str],
        clock: Callable = utc_now
    ):
        if not park_ids:
            raise ValueError("At least one park id is required")
        self.client = client
        self.store = store
        self.park_ids: List[str] = list(park_ids)
        self.clock = clock

        self._lock = Lock()
        self._state = RefreshState.IDLE
        self._inflight: Optional[Future] = None
        self._latest: Optional[WaitTimesView] = None
        self._last_error: Optional[UpstreamUnavailable] = None
        self.stats = {
            'cycles_started': 0,
            'cycles_succeeded': 0,
            'cycles_failed': 0,
            'triggers_coalesced': 0
        }

    @property
    def state(self) -> RefreshState:
        with self._lock:
            return self._state

    @property
    def latest(self) -> Optional[WaitTimesView]:
        """Last successful result; a failed cycle never clears it."""
        with self._lock:
            return self._latest

    @property
    def last_error(self) -> Optional[UpstreamUnavailable]:
        """Error from the most recent cycle, None if it succeeded."""
        with self._lock:
            return self._last_error

    @property
    def is_fetching(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def refresh(self) -> WaitTimesView:
        """
        On-demand refresh.

        Starts a cycle, or joins the one already in flight.

        Returns:
            WaitTimesView with the fresh snapshot and stored history

        Raises:
            UpstreamUnavailable: If any park fetch failed
        """
        future, owner = self._claim('on_demand')
        if not owner:
            return future.result()
        return self._run_cycle(future, 'on_demand')

    def tick(self) -> Optional[WaitTimesView]:
        """
        Scheduled refresh.

        No-op while a cycle is in flight. Failures are logged, not raised,
        since there is no caller to surface them to.

        Returns:
            WaitTimesView on success, None if skipped or failed
        """
        future, owner = self._claim('scheduled')
        if not owner:
            return None
        try:
            return self._run_cycle(future, 'scheduled')
        except UpstreamUnavailable:
            return None

    # -------------------------------------------------------------- internal

    def _claim(self, trigger: str):
        """Return (future, True) if this caller owns a new cycle, else the in-flight one."""
        with self._lock:
            if self._inflight is not None:
                self.stats['triggers_coalesced'] += 1
                log_refresh_coalesced(trigger)
                return self._inflight, False
            future: Future = Future()
            self._inflight = future
            self._state = RefreshState.FETCHING
            self.stats['cycles_started'] += 1
            return future, True

    def _run_cycle(self, future: Future, trigger: str) -> WaitTimesView:
        start = time.monotonic()
        try:
            log_refresh_start(len(self.park_ids), trigger)
            timestamp = self.clock()
            parks = self._fetch_all()

            with self._lock:
                self._state = RefreshState.MERGING

            snapshot = Snapshot(timestamp=timestamp, parks=tuple(parks))
            view = self.store.current_plus_history(snapshot)
        except UpstreamUnavailable as e:
            log_refresh_error(e, e.park_id)
            with self._lock:
                self._state = RefreshState.FETCH_FAILED
                self._last_error = e
                self.stats['cycles_failed'] += 1
                self._inflight = None
            future.set_exception(e)
            raise
        except BaseException as e:
            # Store faults are handled inside the store; anything here is a bug.
            # The gate is released so later triggers are not stuck behind it.
            logger.error(f"Refresh cycle aborted: {type(e).__name__}: {e}", exc_info=True)
            with self._lock:
                self._state = RefreshState.IDLE
                self.stats['cycles_failed'] += 1
                self._inflight = None
            future.set_exception(e)
            raise

        with self._lock:
            self._latest = view
            self._last_error = None
            self.stats['cycles_succeeded'] += 1
            self._state = RefreshState.IDLE
            self._inflight = None
        future.set_result(view)

        persisted = bool(view.history) and view.history[-1] is snapshot
        log_refresh_complete(
            duration_seconds=round(time.monotonic() - start, 3),
            parks_fetched=len(parks),
            rides_fetched=sum(len(p.rides) for p in parks),
            persisted=persisted
        )
        return view

    def _fetch_all(self) -> List[ParkSnapshot]:
        """
        Fetch every park in parallel.

        Raises:
            UpstreamUnavailable: For the first configured park whose fetch failed
        """
        with ThreadPoolExecutor(max_workers=len(self.park_ids), thread_name_prefix='park-fetch') as pool:
            futures = [(park_id, pool.submit(self.client.fetch_park_live, park_id)) for park_id in self.park_ids]

        parks = []
        for park_id, park_future in futures:
            try:
                parks.append(park_future.result())
            except Exception as e:
                logger.warning(f"Fetch failed for park {park_id}: {type(e).__name__}: {e}")
                raise UpstreamUnavailable(park_id, e) from e
        return parks
