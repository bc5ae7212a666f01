"""Logic helpers for walking a directory into the index."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path

from ..classify import ProcessResult, ResultTally, classify
from ..config import Config, load_config
from ..hasher import EMPTY_HASH, hash_file
from ..output import ProgressReporter
from ..reconcile import reconcile
from ..scheduler import WorkScheduler
from ..snapshot import Snapshot
from ..store import MetadataStore
from ..utils import format_modified, iter_files, resolve_directory

STORE_SUFFIXES = ("", "-wal", "-shm", "-journal")


@dataclass(slots=True)
class IndexResult:
    tally: ResultTally
    removed: int = 0

    @property
    def files_processed(self) -> int:
        return self.tally.total


def process_path(
    path: str,
    store: MetadataStore,
    snapshot: Snapshot,
    chunk_size: int,
) -> ProcessResult:
    """Observe, classify and, when stale, hash and store a single file."""

    try:
        stat = os.stat(path)
    except FileNotFoundError:
        # vanished since listing; its snapshot entry stays and gets reconciled
        return ProcessResult.FAILED
    except OSError:
        # still listed but unreadable; keep whatever the store already holds
        snapshot.pop(path)
        return ProcessResult.FAILED
    size = stat.st_size
    modified = format_modified(stat)
    result = classify(size, modified, snapshot.pop(path))
    if result is ProcessResult.CACHED:
        return result
    if result is ProcessResult.ZERO_LENGTH:
        store.upsert(path, size, modified, EMPTY_HASH)
    elif result.needs_hash:
        store.upsert(path, size, modified, hash_file(path, chunk_size))
    return result


def _store_files(database: Path | str) -> frozenset[str]:
    base = os.path.normcase(os.path.abspath(database))
    return frozenset(base + suffix for suffix in STORE_SUFFIXES)


def build_index(
    directory: Path | str,
    database: Path | str,
    *,
    config: Config | None = None,
    reporter: ProgressReporter | None = None,
) -> IndexResult:
    """Bring the index in *database* in line with the files under *directory*.

    Stored paths are *directory* joined with each file's relative path, so
    walking ``.`` stores ``a/b.txt``. The database and its journal files are
    never indexed. Raises ``StoreError`` before touching any file when the
    database cannot be opened.
    """

    config = config or load_config()
    reporter = reporter or ProgressReporter()
    resolve_directory(directory)
    root = os.fspath(directory)
    interval = config.progress_interval_seconds
    own_files = _store_files(database)

    with MetadataStore.open(database) as store:
        store.ensure_schema()
        snapshot = Snapshot(store.load_all(reporter.read_progress, progress_interval=interval))
        tally = ResultTally()

        def _record_result(path: str, result: ProcessResult) -> None:
            tally.add(result)

        def _record_error(path: str, error: BaseException) -> None:
            tally.add(ProcessResult.FAILED)

        def _report_walk_error(error: OSError) -> None:
            reporter.walk_error(error.filename or root, error)

        scheduler = WorkScheduler(
            limit=config.concurrency,
            running_long_seconds=config.running_long_seconds,
            abandon_seconds=config.abandon_seconds,
            reporter=reporter,
            on_result=_record_result,
            on_error=_record_error,
        )
        last_report = time.monotonic()
        with scheduler:
            for path in iter_files(root, on_error=_report_walk_error):
                if os.path.normcase(os.path.abspath(path)) in own_files:
                    continue
                scheduler.submit(path, process_path, path, store, snapshot, config.chunk_size)
                if time.monotonic() - last_report > interval:
                    reporter.processed(tally.total, tally)
                    last_report = time.monotonic()
            reporter.draining()
            scheduler.drain()
        reporter.processed(tally.total, tally)
        removed = reconcile(store, snapshot, reporter, progress_interval=interval)

    return IndexResult(tally=tally, removed=removed)
