"""In-memory copy of the index used to detect removed files."""

from __future__ import annotations

from threading import Lock
from typing import Mapping


class Snapshot:
    """Thread-safe path -> ``(size, modified)`` map consumed during a walk.

    Every observed path is popped once; whatever is left after the walk was
    never seen and is stale.
    """

    def __init__(self, entries: Mapping[str, tuple[int, str]] | None = None) -> None:
        self._entries: dict[str, tuple[int, str]] = dict(entries or {})
        self._lock = Lock()

    def pop(self, path: str) -> tuple[int, str] | None:
        """Atomically remove *path* and return its entry, or None if absent."""
        with self._lock:
            return self._entries.pop(path, None)

    def remaining(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
