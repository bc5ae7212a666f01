import io
import os
import sqlite3
import threading

import pytest
from rich.console import Console

import hashfs.services.index_service as index_service
from hashfs.classify import ProcessResult
from hashfs.config import Config
from hashfs.output import ProgressReporter
from hashfs.snapshot import Snapshot
from hashfs.store import MetadataStore, StoreError

STAMP_NS = 1_700_000_000_000_000_000


class RecordingReporter(ProgressReporter):
    def __init__(self) -> None:
        super().__init__(Console(file=io.StringIO()))
        self.events: list[tuple[str, object]] = []

    def running_long(self, path, elapsed):
        self.events.append(("running_long", path))

    def walk_error(self, path, error):
        self.events.append(("walk_error", path))


def _config(**overrides) -> Config:
    values = dict(
        concurrency=2,
        running_long_seconds=5.0,
        abandon_seconds=10.0,
        progress_interval_seconds=60.0,
    )
    values.update(overrides)
    return Config(**values)


def _write(path, data: bytes, stamp_ns: int = STAMP_NS) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.utime(path, ns=(stamp_ns, stamp_ns))


@pytest.fixture
def tree(tmp_path, monkeypatch):
    root = tmp_path / "tree"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "hashes.db"


@pytest.fixture
def hash_calls(monkeypatch):
    calls: list[str] = []
    real = index_service.hash_file

    def counting(path, chunk_size=1024 * 1024):
        calls.append(path)
        return real(path, chunk_size)

    monkeypatch.setattr(index_service, "hash_file", counting)
    return calls


def _run(db_path, reporter=None, **overrides):
    return index_service.build_index(
        ".",
        db_path,
        config=_config(**overrides),
        reporter=reporter or RecordingReporter(),
    )


def _record(db_path, path):
    with MetadataStore.open(db_path) as store:
        return store.get(path)


def _count(db_path):
    with MetadataStore.open(db_path) as store:
        return store.count()


def test_first_run_indexes_scenario(tree, db_path, hash_calls):
    _write(tree / "a" / "b.txt", b"data")
    _write(tree / "a" / "c.txt", b"")

    result = _run(db_path)

    b_path = os.path.join("a", "b.txt")
    c_path = os.path.join("a", "c.txt")
    assert _count(db_path) == 2
    assert result.files_processed == 2
    assert result.tally[ProcessResult.NEWLY_HASHED] == 1
    assert result.tally[ProcessResult.ZERO_LENGTH] == 1
    assert _record(db_path, c_path).hash == ""
    b_hash = _record(db_path, b_path).hash
    assert len(b_hash) == 64
    assert int(b_hash, 16) >= 0
    assert _record(db_path, b_path).size == 4
    assert hash_calls == [b_path]


def test_unchanged_files_are_cached_on_second_run(tree, db_path, hash_calls):
    _write(tree / "one.txt", b"one")
    _write(tree / "sub" / "two.txt", b"two!")
    _write(tree / "sub" / "empty.txt", b"")
    _run(db_path)
    hash_calls.clear()

    result = _run(db_path)

    assert hash_calls == []
    assert result.tally[ProcessResult.CACHED] == 3
    assert result.tally.total == 3
    assert result.removed == 0


def test_size_change_is_reported_before_timestamp_change(tree, db_path, hash_calls):
    target = tree / "grow.txt"
    _write(target, b"data")
    _run(db_path)
    before = _record(db_path, "grow.txt").hash

    _write(target, b"more data", stamp_ns=STAMP_NS + 5_000_000_000)
    result = _run(db_path)

    assert result.tally[ProcessResult.REHASHED_DUE_TO_SIZE] == 1
    record = _record(db_path, "grow.txt")
    assert record.size == 9
    assert record.hash != before


def test_size_change_with_same_timestamp(tree, db_path, hash_calls):
    target = tree / "grow.txt"
    _write(target, b"data")
    _run(db_path)

    _write(target, b"data plus")
    result = _run(db_path)

    assert result.tally[ProcessResult.REHASHED_DUE_TO_SIZE] == 1


def test_timestamp_change_rehashes(tree, db_path, hash_calls):
    target = tree / "edit.txt"
    _write(target, b"aaaa")
    _run(db_path)
    hash_calls.clear()

    _write(target, b"bbbb", stamp_ns=STAMP_NS + 1_000_000_000)
    result = _run(db_path)

    assert result.tally[ProcessResult.REHASHED_DUE_TO_MODIFIED_DATE] == 1
    assert hash_calls == ["edit.txt"]


def test_truncated_file_gets_empty_sentinel_without_hashing(tree, db_path, hash_calls):
    target = tree / "shrink.txt"
    _write(target, b"data")
    _run(db_path)
    hash_calls.clear()

    _write(target, b"", stamp_ns=STAMP_NS + 1_000_000_000)
    result = _run(db_path)

    assert hash_calls == []
    assert result.tally[ProcessResult.ZERO_LENGTH] == 1
    assert _record(db_path, "shrink.txt").hash == ""


def test_deleted_files_are_reconciled(tree, db_path, hash_calls, monkeypatch):
    for name in ("keep.txt", "gone1.txt", "gone2.txt"):
        _write(tree / name, name.encode())
    _run(db_path)
    before = _count(db_path)
    (tree / "gone1.txt").unlink()
    (tree / "gone2.txt").unlink()

    deleted: list[str] = []
    real_delete = MetadataStore.delete

    def tracking_delete(self, path):
        deleted.append(path)
        real_delete(self, path)

    monkeypatch.setattr(MetadataStore, "delete", tracking_delete)
    result = _run(db_path)

    assert result.removed == 2
    assert sorted(deleted) == ["gone1.txt", "gone2.txt"]
    assert _count(db_path) == before - 2
    assert _record(db_path, "keep.txt") is not None


def test_unreadable_file_is_stored_without_hash(tree, db_path, monkeypatch):
    _write(tree / "locked.bin", b"secret")
    monkeypatch.setattr(index_service, "hash_file", lambda path, chunk_size=0: None)

    result = _run(db_path)

    record = _record(db_path, "locked.bin")
    assert result.tally[ProcessResult.NEWLY_HASHED] == 1
    assert record is not None
    assert record.hash is None
    assert record.size == 6


def test_file_with_unreadable_metadata_keeps_its_record(tree, db_path, monkeypatch):
    _write(tree / "locked.bin", b"secret")
    _run(db_path)
    real_stat = os.stat

    def denied(path, *args, **kwargs):
        if os.fspath(path) == "locked.bin":
            raise PermissionError(13, "Permission denied", path)
        return real_stat(path, *args, **kwargs)

    monkeypatch.setattr(index_service.os, "stat", denied)

    result = _run(db_path)

    assert result.tally[ProcessResult.FAILED] == 1
    assert result.removed == 0
    assert _record(db_path, "locked.bin").size == 6


def test_stuck_unit_does_not_block_other_files(tree, db_path, monkeypatch):
    for name in ("stuck.bin", "a.txt", "b.txt", "c.txt"):
        _write(tree / name, b"x" * 8)
    release = threading.Event()
    released_early: list[bool] = []

    def slow_hash(path, chunk_size=0):
        if path == "stuck.bin":
            release.wait(10)
            return "f" * 64
        released_early.append(release.is_set())
        return "0" * 64

    monkeypatch.setattr(index_service, "hash_file", slow_hash)
    timer = threading.Timer(0.8, release.set)
    timer.start()
    reporter = RecordingReporter()
    try:
        result = _run(
            db_path,
            reporter=reporter,
            concurrency=1,
            running_long_seconds=0.05,
            abandon_seconds=0.2,
        )
    finally:
        timer.cancel()

    assert released_early == [False, False, False]
    assert ("running_long", "stuck.bin") in reporter.events
    assert result.tally[ProcessResult.NEWLY_HASHED] == 4
    assert _record(db_path, "stuck.bin").hash == "f" * 64
    assert _count(db_path) == 4


def test_store_failure_aborts_before_walking(tree, tmp_path, hash_calls):
    _write(tree / "a.txt", b"data")

    with pytest.raises(StoreError):
        _run(tmp_path / "missing" / "hashes.db")

    assert hash_calls == []


def test_missing_directory_raises(tmp_path, db_path):
    with pytest.raises(FileNotFoundError):
        index_service.build_index(
            tmp_path / "nope",
            db_path,
            config=_config(),
            reporter=RecordingReporter(),
        )


def test_process_path_vanished_file_keeps_snapshot_entry(tmp_path, db_path):
    missing = str(tmp_path / "vanished.txt")
    snapshot = Snapshot({missing: (4, "t")})
    with MetadataStore.open(db_path) as store:
        store.ensure_schema()
        result = index_service.process_path(missing, store, snapshot, 1024)

    assert result is ProcessResult.FAILED
    assert missing in snapshot


def test_store_with_incompatible_table_aborts_before_walking(tree, db_path, hash_calls):
    _write(tree / "a.txt", b"data")
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE files (name TEXT)")
    conn.commit()
    conn.close()

    with pytest.raises(StoreError):
        _run(db_path)

    assert hash_calls == []


def test_process_path_consumes_snapshot_entry_on_rehash(tree, db_path):
    _write(tree / "a.txt", b"data")
    snapshot = Snapshot({"a.txt": (1, "old")})
    with MetadataStore.open(db_path) as store:
        store.ensure_schema()
        result = index_service.process_path("a.txt", store, snapshot, 1024)

    assert result is ProcessResult.REHASHED_DUE_TO_SIZE
    assert len(snapshot) == 0


def test_database_inside_tree_is_not_indexed(tree, hash_calls):
    _write(tree / "a.txt", b"data")

    result = _run(tree / "hashes.db")
    second = _run(tree / "hashes.db")

    assert result.files_processed == 1
    assert _count(tree / "hashes.db") == 1
    assert second.tally[ProcessResult.CACHED] == 1
    assert second.removed == 0
