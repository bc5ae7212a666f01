"""Utility helpers for filesystem access and path handling."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator


def resolve_directory(path: Path | str) -> Path:
    """Resolve and validate a user supplied directory path."""
    dir_path = Path(path).expanduser().resolve()
    if not dir_path.exists():
        raise FileNotFoundError(f"Directory does not exist: {dir_path}")
    if not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")
    return dir_path


def iter_files(
    root: Path | str,
    on_error: Callable[[OSError], None] | None = None,
) -> Iterator[str]:
    """Yield every file below *root* as the root joined with its relative path.

    Paths are normalised, so walking ``.`` yields ``a/b.txt`` rather than
    ``./a/b.txt``. Hidden entries are included and symlinked directories are
    not followed. Directories that cannot be listed are passed to *on_error*
    and skipped.
    """

    base = os.fspath(root)
    for dirpath, _dirnames, filenames in os.walk(base, onerror=on_error):
        for filename in filenames:
            yield os.path.normpath(os.path.join(dirpath, filename))


def format_modified(stat_result: os.stat_result) -> str:
    """Return a stable, round-trippable ISO-8601 UTC string for a file mtime."""

    seconds, nanos = divmod(stat_result.st_mtime_ns, 1_000_000_000)
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return stamp.replace(microsecond=nanos // 1000).isoformat(timespec="microseconds")


def format_elapsed(seconds: float) -> str:
    """Render *seconds* as ``H:MM:SS.s`` for diagnostics."""
    minutes, secs = divmod(max(seconds, 0.0), 60)
    hours, minutes = divmod(int(minutes), 60)
    return f"{hours}:{minutes:02d}:{secs:04.1f}"
