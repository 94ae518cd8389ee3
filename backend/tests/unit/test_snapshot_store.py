"""
Wait Time Tracker - Snapshot Store Unit Tests

Tests SnapshotStore with in-memory and file media:
- Cold start and lazy load
- 60 second dedup window
- Retention cap with FIFO eviction
- Corrupt / unreadable storage treated as cold start
- Write failures logged and swallowed
- Serialized format

Priority: P0 - History durability
"""

import json
from datetime import datetime, timedelta, timezone
from threading import Thread

import pytest

from storage.medium import (
    FileStorageMedium,
    MemoryStorageMedium,
    StorageMedium,
    StoreReadFailure,
    StoreWriteFailure,
)
from storage.snapshot_store import SnapshotStore


class BrokenMedium(StorageMedium):
    """Medium whose every read and write fails."""

    @property
    def location(self):
        return 'broken'

    def read(self):
        raise StoreReadFailure("disk on fire")

    def write(self, data):
        raise StoreWriteFailure("disk on fire")


@pytest.fixture
def medium():
    return MemoryStorageMedium()


@pytest.fixture
def store(medium):
    return SnapshotStore(medium, dedup_window_seconds=60, max_snapshots=2000)


class TestInit:

    def test_rejects_zero_cap(self, medium):
        with pytest.raises(ValueError):
            SnapshotStore(medium, max_snapshots=0)

    def test_rejects_negative_window(self, medium):
        with pytest.raises(ValueError):
            SnapshotStore(medium, dedup_window_seconds=-1)


class TestColdStart:

    def test_load_empty_returns_empty_list(self, store):
        assert store.load() == []

    def test_append_after_cold_start(self, store, make_snapshot, base_time):
        store.load()

        assert store.append(make_snapshot(base_time)) is True
        assert len(store.history()) == 1

    def test_history_loads_lazily(self, make_snapshot, base_time):
        seeded = MemoryStorageMedium()
        SnapshotStore(seeded).append(make_snapshot(base_time))

        store = SnapshotStore(seeded)

        assert len(store) == 0
        assert store.latest().timestamp == base_time
        assert len(store) == 1


class TestDedupWindow:

    def test_second_append_within_window_is_dropped(self, store, make_snapshot, base_time):
        assert store.append(make_snapshot(base_time)) is True
        assert store.append(make_snapshot(base_time + timedelta(seconds=30))) is False

        assert [s.timestamp for s in store.history()] == [base_time]

    def test_exactly_window_apart_is_dropped(self, store, make_snapshot, base_time):
        store.append(make_snapshot(base_time))

        assert store.append(make_snapshot(base_time + timedelta(seconds=60))) is False

    def test_gap_over_window_persists_both(self, store, make_snapshot, base_time):
        store.append(make_snapshot(base_time))

        assert store.append(make_snapshot(base_time + timedelta(seconds=61))) is True
        assert len(store.history()) == 2

    def test_dropped_snapshot_is_not_written(self, store, medium, make_snapshot, base_time):
        store.append(make_snapshot(base_time))
        store.append(make_snapshot(base_time + timedelta(seconds=10)))

        assert medium.write_count == 1

    def test_zero_window_dedups_identical_timestamps_only(self, medium, make_snapshot, base_time):
        store = SnapshotStore(medium, dedup_window_seconds=0)

        assert store.append(make_snapshot(base_time)) is True
        assert store.append(make_snapshot(base_time)) is False
        assert store.append(make_snapshot(base_time + timedelta(seconds=1))) is True


class TestRetention:

    def test_cap_evicts_oldest_first(self, medium, make_snapshot, base_time):
        store = SnapshotStore(medium, dedup_window_seconds=60, max_snapshots=3)
        times = [base_time + timedelta(minutes=2 * i) for i in range(5)]

        for moment in times:
            store.append(make_snapshot(moment))

        assert [s.timestamp for s in store.history()] == times[2:]

    def test_defaults(self, medium):
        store = SnapshotStore(medium)

        assert store.max_snapshots == 2000
        assert store.dedup_window_seconds == 60

    def test_trim_after_lowering_cap(self, medium, make_snapshot, base_time):
        store = SnapshotStore(medium, max_snapshots=10)
        for i in range(5):
            store.append(make_snapshot(base_time + timedelta(minutes=2 * i)))

        store.max_snapshots = 2

        assert store.trim() == 3
        assert len(store.history()) == 2
        assert store.trim() == 0

    def test_load_applies_cap(self, medium, make_snapshot, base_time):
        SnapshotStore(medium, max_snapshots=10).append(make_snapshot(base_time))
        writer = SnapshotStore(medium, max_snapshots=10)
        for i in range(1, 6):
            writer.append(make_snapshot(base_time + timedelta(minutes=2 * i)))

        assert len(SnapshotStore(medium, max_snapshots=4).load()) == 4


class TestCorruptStorage:

    @pytest.mark.parametrize('raw', [b'{not json', b'{"timestamp": "x"}', b'\xff\xfe', b'42'])
    def test_corrupt_payload_is_cold_start(self, raw, app_logs):
        store = SnapshotStore(MemoryStorageMedium(raw))

        assert store.load() == []
        assert any('unreadable' in r.getMessage() for r in app_logs.records)

    def test_unreadable_medium_is_cold_start(self):
        store = SnapshotStore(BrokenMedium())

        assert store.load() == []

    def test_bad_entries_are_skipped(self, make_snapshot, base_time):
        good = make_snapshot(base_time).to_dict()
        later = make_snapshot(base_time + timedelta(minutes=5)).to_dict()
        earlier = make_snapshot(base_time - timedelta(minutes=5)).to_dict()
        raw = json.dumps([good, 'junk', {'timestamp': 'nope'}, later, earlier]).encode()

        history = SnapshotStore(MemoryStorageMedium(raw)).load()

        assert [s.timestamp for s in history] == [base_time, base_time + timedelta(minutes=5)]

    def test_deeply_nested_payload_is_cold_start(self, make_snapshot, base_time, app_logs):
        store = SnapshotStore(MemoryStorageMedium(b"[" * 100000))

        assert store.load() == []
        assert any(r.levelname == "WARNING" for r in app_logs.records)
        assert store.append(make_snapshot(base_time)) is True

    def test_out_of_range_timestamp_is_skipped(self, make_snapshot, base_time):
        raw = b'[{"timestamp": "0001-01-01T00:00:00+05:00", "parks": []}]'
        medium = MemoryStorageMedium(raw)
        store = SnapshotStore(medium)

        assert store.load() == []
        assert store.append(make_snapshot(base_time)) is True
        assert len(json.loads(medium.read())) == 1


class TestWriteFailure:

    def test_read_only_medium_keeps_memory_history(self, make_snapshot, base_time, app_logs):
        store = SnapshotStore(MemoryStorageMedium(read_only=True))

        assert store.append(make_snapshot(base_time)) is True
        assert len(store.history()) == 1
        assert any('Failed to save history' in r.getMessage() for r in app_logs.records)

    def test_broken_medium_never_raises(self, make_snapshot, base_time):
        store = SnapshotStore(BrokenMedium())

        view = store.current_plus_history(make_snapshot(base_time))

        assert view.current.timestamp == base_time

    def test_unwritable_timestamp_is_logged(self, make_snapshot, app_logs):
        store = SnapshotStore(MemoryStorageMedium())
        ancient = datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=5)))

        assert store.append(make_snapshot(ancient)) is True
        assert len(store.history()) == 1
        assert any(r.getMessage() == 'Failed to save history' for r in app_logs.records)


class TestCurrentPlusHistory:

    def test_current_is_fresh_even_when_deduped(self, store, make_snapshot, base_time):
        first = make_snapshot(base_time)
        fresh = make_snapshot(base_time + timedelta(seconds=5))
        store.append(first)

        view = store.current_plus_history(fresh)

        assert view.current is fresh
        assert view.history == (first,)

    def test_history_is_a_copy(self, store, make_snapshot, base_time):
        store.append(make_snapshot(base_time))

        history = store.history()
        history.clear()

        assert len(store.history()) == 1


class TestSerializedFormat:

    def test_medium_holds_json_array(self, store, medium, make_snapshot, base_time):
        store.append(make_snapshot(base_time))

        payload = json.loads(medium.read())

        assert isinstance(payload, list)
        assert payload[0]['timestamp'] == '2025-06-01T17:00:00.000Z'
        assert payload[0]['parks'][0]['liveData'] == []


class TestFileMedium:

    def test_missing_file_is_cold_start(self, tmp_path):
        medium = FileStorageMedium(str(tmp_path / 'history.json'))

        assert medium.read() is None
        assert SnapshotStore(medium).load() == []

    def test_write_creates_parent_dirs(self, tmp_path, make_snapshot, base_time):
        path = tmp_path / 'nested' / 'dir' / 'history.json'
        store = SnapshotStore(FileStorageMedium(str(path)))

        store.append(make_snapshot(base_time))

        assert path.exists()
        assert len(SnapshotStore(FileStorageMedium(str(path))).load()) == 1

    def test_write_leaves_no_temp_files(self, tmp_path, make_snapshot, base_time):
        store = SnapshotStore(FileStorageMedium(str(tmp_path / 'history.json')))

        for i in range(3):
            store.append(make_snapshot(base_time + timedelta(minutes=2 * i)))

        assert [p.name for p in tmp_path.iterdir()] == ['history.json']

    def test_unreadable_path_raises_read_failure(self, tmp_path):
        # A directory where the file should be
        (tmp_path / 'history.json').mkdir()
        medium = FileStorageMedium(str(tmp_path / 'history.json'))

        with pytest.raises(StoreReadFailure):
            medium.read()


class TestConcurrentAppends:

    def test_parallel_appends_keep_history_monotonic(self, medium, make_snapshot, base_time):
        store = SnapshotStore(medium, dedup_window_seconds=0, max_snapshots=50)
        snapshots = [make_snapshot(base_time + timedelta(seconds=i)) for i in range(100)]

        threads = [Thread(target=store.append, args=(s,)) for s in snapshots]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        history = store.history()
        assert len(history) <= 50
        assert all(a.timestamp < b.timestamp for a, b in zip(history, history[1:]))


class TestSharedMedium:

    def test_two_writers_on_one_file_keep_each_others_snapshots(self, tmp_path, make_snapshot, base_time):
        path = str(tmp_path / 'history.json')
        web = SnapshotStore(FileStorageMedium(path))
        poller = SnapshotStore(FileStorageMedium(path))

        web.append(make_snapshot(base_time))
        poller.append(make_snapshot(base_time + timedelta(minutes=2)))
        web.append(make_snapshot(base_time + timedelta(minutes=4)))

        stored = SnapshotStore(FileStorageMedium(path)).load()
        assert [s.timestamp for s in stored] == [
            base_time,
            base_time + timedelta(minutes=2),
            base_time + timedelta(minutes=4),
        ]

    def test_deduped_append_still_sees_other_writer(self, medium, make_snapshot, base_time):
        web = SnapshotStore(medium)
        poller = SnapshotStore(medium)
        web.append(make_snapshot(base_time))
        poller.append(make_snapshot(base_time + timedelta(minutes=2)))

        assert web.append(make_snapshot(base_time + timedelta(minutes=2, seconds=30))) is False
        assert [s.timestamp for s in web.history()] == [base_time, base_time + timedelta(minutes=2)]

    def test_merge_respects_cap(self, medium, make_snapshot, base_time):
        web = SnapshotStore(medium, max_snapshots=2)
        poller = SnapshotStore(medium, max_snapshots=2)
        web.append(make_snapshot(base_time))
        poller.append(make_snapshot(base_time + timedelta(minutes=2)))

        web.append(make_snapshot(base_time + timedelta(minutes=4)))

        assert [s.timestamp for s in SnapshotStore(medium).load()] == [
            base_time + timedelta(minutes=2),
            base_time + timedelta(minutes=4),
        ]
