"""
Wait Time Tracker - Snapshot Store
Bounded, deduplicated, durable history of wait-time snapshots.

Rules:
- A snapshot is appended only if it is more than ``dedup_window_seconds``
  newer than the last stored one (or the history is empty). Faster polling
  still returns fresh data to callers; it just isn't stored.
- After each append the oldest snapshots are evicted until the history is at
  most ``max_snapshots`` long.
- Storage faults never reach the caller. An unreadable or corrupt medium is
  a cold start; a failed write is logged and the in-memory history is kept.

Concurrency:
    Appends are serialized by a write lock. The in-memory history is an
    immutable tuple swapped under a separate lock, so readers always see
    the state before or after an append+trim, never half of one.

    Several processes may write the same medium. Each append re-reads the
    medium under the write lock and merges it with the in-memory history
    before applying the dedup window, so one writer never drops another's
    snapshots. Writers racing between read and write can still lose the
    loser's latest snapshot; the next append merges it back if it is
    still held in memory.

Usage:
    from storage.snapshot_store import SnapshotStore
    from storage.medium import FileStorageMedium

    store = SnapshotStore(FileStorageMedium("wait_times.json"))
    view = store.current_plus_history(fresh_snapshot)
"""

import json
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from models.snapshot import Snapshot, WaitTimesView, snapshots_to_payload
from storage.medium import StorageMedium, StoreReadFailure, StoreWriteFailure
from utils.config import HISTORY_DEDUP_WINDOW_SECONDS, HISTORY_MAX_SNAPSHOTS
from utils.logger import log_store_read_failure, log_store_write_failure, logger
from utils.timezone import format_iso_utc


class SnapshotStore:
    """
    Append-only snapshot log with dedup window and FIFO retention.

    Attributes:
        medium: Durable byte target
        dedup_window_seconds: Minimum gap between stored snapshots
        max_snapshots: Retention cap
    """

    def __init__(
        self,
        medium: StorageMedium,
        dedup_window_seconds: int = HISTORY_DEDUP_WINDOW_SECONDS,
        max_snapshots: int = HISTORY_MAX_SNAPSHOTS
    ):
        if max_snapshots < 1:
            raise ValueError(f"max_snapshots must be at least 1, got {max_snapshots}")
        if dedup_window_seconds < 0:
            raise ValueError(f"dedup_window_seconds must be >= 0, got {dedup_window_seconds}")
        self.medium = medium
        self.dedup_window_seconds = dedup_window_seconds
        self.max_snapshots = max_snapshots

        self._history: Tuple[Snapshot, ...] = ()
        self._loaded = False
        self._lock = Lock()
        self._write_lock = Lock()

    # ------------------------------------------------------------------ read

    def load(self) -> List[Snapshot]:
        """
        Read the persisted history from the medium.

        Replaces the in-memory history. Cold start and unreadable/corrupt
        storage both yield an empty list.

        Returns:
            Persisted snapshots, oldest first
        """
        with self._write_lock:
            history = self._read_medium()
            self._swap(history)
        return list(history)

    def history(self) -> List[Snapshot]:
        """Current history, loading from the medium on first use."""
        self._ensure_loaded()
        with self._lock:
            return list(self._history)

    def latest(self) -> Optional[Snapshot]:
        self._ensure_loaded()
        with self._lock:
            return self._history[-1] if self._history else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    # ----------------------------------------------------------------- write

    def append(self, snapshot: Snapshot) -> bool:
        """
        Append a snapshot if it falls outside the dedup window, then trim.

        Args:
            snapshot: Freshly fetched snapshot

        Returns:
            True if the snapshot was added to the history
        """
        self._ensure_loaded()
        with self._write_lock:
            history = self._merged_with_medium()
            if history:
                gap = (snapshot.timestamp - history[-1].timestamp).total_seconds()
                if gap <= self.dedup_window_seconds:
                    logger.debug(
                        f"Snapshot {snapshot.timestamp.isoformat()} within "
                        f"{self.dedup_window_seconds}s of last stored; not persisted"
                    )
                    self._swap(self._trimmed(history))
                    return False

            updated = self._trimmed(history + (snapshot,))
            self._swap(updated)
            self._write_medium(updated)
            return True

    def trim(self) -> int:
        """
        Evict oldest snapshots until the history is within ``max_snapshots``.

        Returns:
            Number of snapshots evicted
        """
        self._ensure_loaded()
        with self._write_lock:
            history = self._merged_with_medium()
            trimmed = self._trimmed(history)
            evicted = len(history) - len(trimmed)
            self._swap(trimmed)
            if evicted:
                self._write_medium(trimmed)
            return evicted

    def current_plus_history(self, fresh: Snapshot) -> WaitTimesView:
        """
        Offer ``fresh`` to the history and return it with the durable log.

        ``current`` is always ``fresh``, whether or not it was stored.
        """
        self.append(fresh)
        with self._lock:
            return WaitTimesView(current=fresh, history=self._history)

    def stats(self) -> Dict[str, Any]:
        """History statistics for health checks."""
        with self._lock:
            history = self._history
            loaded = self._loaded
        return {
            "loaded": loaded,
            "snapshot_count": len(history),
            "max_snapshots": self.max_snapshots,
            "dedup_window_seconds": self.dedup_window_seconds,
            "oldest": history[0].timestamp.isoformat() if history else None,
            "newest": history[-1].timestamp.isoformat() if history else None,
            "location": self.medium.location
        }

    # -------------------------------------------------------------- internal

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._write_lock:
            # Double-check after acquiring the lock
            if not self._loaded:
                self._swap(self._read_medium())

    def _swap(self, history: Tuple[Snapshot, ...]) -> None:
        with self._lock:
            self._history = history
            self._loaded = True

    def _trimmed(self, history: Tuple[Snapshot, ...]) -> Tuple[Snapshot, ...]:
        if len(history) <= self.max_snapshots:
            return history
        return history[-self.max_snapshots:]

    def _merged_with_medium(self) -> Tuple[Snapshot, ...]:
        """
        Combine the in-memory history with what the medium holds now.

        Another process may share the medium (a cron poller next to the web
        app), so appends start from the union of both logs. Snapshots
        closer than the dedup window to an earlier one are collapsed.
        Must be called with ``_write_lock`` held.
        """
        stored = self._read_medium(quiet=True)
        ours = self._history
        if not stored:
            return ours
        if not ours:
            return stored

        merged: List[Snapshot] = []
        for snapshot in sorted(ours + stored, key=lambda s: s.timestamp):
            if merged:
                gap = (snapshot.timestamp - merged[-1].timestamp).total_seconds()
                if gap <= self.dedup_window_seconds:
                    continue
            merged.append(snapshot)
        return tuple(merged)

    def _read_medium(self, quiet: bool = False) -> Tuple[Snapshot, ...]:
        try:
            raw = self.medium.read()
            if raw is None:
                if not quiet:
                    logger.info(f"No stored history at {self.medium.location}; starting empty")
                return ()
            return self._decode(raw)
        except StoreReadFailure as e:
            log_store_read_failure(e, self.medium.location)
            return ()

    def _write_medium(self, history: Tuple[Snapshot, ...]) -> None:
        try:
            payload = json.dumps(snapshots_to_payload(list(history)), indent=2)
            self.medium.write(payload.encode('utf-8'))
        except (StoreWriteFailure, TypeError, ValueError, OverflowError, RecursionError) as e:
            log_store_write_failure(e, self.medium.location)

    def _decode(self, raw: bytes) -> Tuple[Snapshot, ...]:
        """
        Decode stored bytes into a monotonic, capped history.

        Entries that fail to parse, that cannot be written back as UTC, or
        that go back in time, are dropped.

        Raises:
            StoreReadFailure: If the payload is not a JSON array
        """
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise StoreReadFailure(f"History at {self.medium.location} is not valid JSON: {e}") from e
        if not isinstance(payload, list):
            raise StoreReadFailure(
                f"History at {self.medium.location} is a {type(payload).__name__}, expected a list"
            )

        snapshots: List[Snapshot] = []
        skipped = 0
        for entry in payload:
            if not isinstance(entry, dict):
                skipped += 1
                continue
            try:
                snapshot = Snapshot.from_dict(entry)
                format_iso_utc(snapshot.timestamp)
            except (ValueError, OverflowError):
                skipped += 1
                continue
            if snapshots and snapshot.timestamp < snapshots[-1].timestamp:
                skipped += 1
                continue
            snapshots.append(snapshot)

        if skipped:
            logger.warning(f"Skipped {skipped} unreadable history entries from {self.medium.location}")
        return self._trimmed(tuple(snapshots))
