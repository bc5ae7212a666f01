"""Index store for HashFS backed by SQLite."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, Iterator

from .text import Messages

TABLE_NAME = "files"

ProgressCallback = Callable[[int], None]


class StoreError(RuntimeError):
    """Raised when the index database cannot be opened or initialised."""


@dataclass(slots=True)
class FileRecord:
    path: str
    size: int
    modified: str
    hash: str | None


def _connect(db_path: Path, *, readonly: bool = False) -> sqlite3.Connection:
    if readonly:
        # as_uri escapes "#", "?" and "%" so they stay part of the file name
        db_uri = f"{db_path.resolve().as_uri()}?mode=ro"
        conn = sqlite3.connect(db_uri, uri=True, check_same_thread=False, isolation_level=None)
    else:
        conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if not readonly:
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")
    conn.execute("PRAGMA busy_timeout = 5000;")
    if readonly:
        conn.execute("PRAGMA query_only = ON;")
    return conn


def _table_exists(conn: sqlite3.Connection, table: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return row is not None


class MetadataStore:
    """Single-table mapping of path to (size, modified, hash).

    One connection is shared by every caller; a lock serialises access so
    concurrent workers can write through without corrupting the table.
    """

    def __init__(self, conn: sqlite3.Connection, db_path: Path, *, readonly: bool = False) -> None:
        self._conn = conn
        self._lock = Lock()
        self.db_path = db_path
        self.readonly = readonly

    @classmethod
    def open(cls, db_path: Path | str, *, readonly: bool = False) -> "MetadataStore":
        path = Path(db_path).expanduser()
        if readonly and not path.is_file():
            raise StoreError(Messages.ERROR_STORE_MISSING.format(path=path))
        try:
            conn = _connect(path, readonly=readonly)
        except sqlite3.Error as exc:
            raise StoreError(Messages.ERROR_STORE_OPEN.format(path=path, reason=exc)) from exc
        store = cls(conn, path, readonly=readonly)
        if readonly:
            try:
                present = _table_exists(conn, TABLE_NAME)
            except sqlite3.Error as exc:
                conn.close()
                raise StoreError(Messages.ERROR_STORE_OPEN.format(path=path, reason=exc)) from exc
            if not present:
                conn.close()
                raise StoreError(
                    Messages.ERROR_STORE_OPEN.format(path=path, reason=f"missing table {TABLE_NAME}")
                )
        return store

    def __enter__(self) -> "MetadataStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def ensure_schema(self) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
                    "path TEXT PRIMARY KEY, size INTEGER, modified TEXT, hash TEXT)"
                )
        except sqlite3.Error as exc:
            raise StoreError(
                Messages.ERROR_STORE_OPEN.format(path=self.db_path, reason=exc)
            ) from exc

    def load_all(
        self,
        progress: ProgressCallback | None = None,
        *,
        progress_interval: float = 10.0,
    ) -> dict[str, tuple[int, str]]:
        """Return every stored path mapped to its ``(size, modified)`` pair."""

        result: dict[str, tuple[int, str]] = {}
        last_report = time.monotonic()
        try:
            with self._lock:
                cursor = self._conn.execute(f"SELECT path, size, modified FROM {TABLE_NAME}")
                for row in cursor:
                    result[row["path"]] = (int(row["size"]), row["modified"])
                    if progress is not None and time.monotonic() - last_report > progress_interval:
                        # rounded down to the thousand, the load is still running
                        progress(len(result) // 1000 * 1000)
                        last_report = time.monotonic()
        except sqlite3.Error as exc:
            raise StoreError(
                Messages.ERROR_STORE_OPEN.format(path=self.db_path, reason=exc)
            ) from exc
        if progress is not None:
            progress(len(result))
        return result

    def get(self, path: str) -> FileRecord | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT path, size, modified, hash FROM {TABLE_NAME} WHERE path = ?",
                (path,),
            ).fetchone()
        if row is None:
            return None
        return FileRecord(
            path=row["path"],
            size=int(row["size"]),
            modified=row["modified"],
            hash=row["hash"],
        )

    def upsert(self, path: str, size: int, modified: str, hash: str | None) -> None:
        with self._lock:
            self._conn.execute(
                f"INSERT OR REPLACE INTO {TABLE_NAME}(path, size, modified, hash) "
                "VALUES (?, ?, ?, ?)",
                (path, size, modified, hash),
            )

    def delete(self, path: str) -> None:
        with self._lock:
            self._conn.execute(f"DELETE FROM {TABLE_NAME} WHERE path = ?", (path,))

    def count(self) -> int:
        with self._lock:
            row = self._conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
        return int(row[0])

    def iter_sizes(self) -> Iterator[tuple[str, int]]:
        """Yield ``(path, size)`` pairs in store iteration order."""

        try:
            with self._lock:
                rows = self._conn.execute(f"SELECT path, size FROM {TABLE_NAME}").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(
                Messages.ERROR_STORE_OPEN.format(path=self.db_path, reason=exc)
            ) from exc
        for row in rows:
            size = row["size"]
            yield row["path"], int(size) if size is not None else 0
