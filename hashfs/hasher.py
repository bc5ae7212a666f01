"""Streaming SHA-256 content hashing."""

from __future__ import annotations

import hashlib
import os

from .config import DEFAULT_CHUNK_SIZE

EMPTY_HASH = ""


def hash_file(path: str | os.PathLike[str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str | None:
    """Return the hex SHA-256 digest of *path*, or None when it cannot be read.

    The file is read sequentially in *chunk_size* blocks. Permission errors,
    vanished files and read failures mid-stream all yield None; callers store
    that as a missing hash instead of retrying.
    """

    digest = hashlib.sha256()
    try:
        with open(path, "rb") as handle:
            while True:
                block = handle.read(chunk_size)
                if not block:
                    break
                digest.update(block)
    except OSError:
        return None
    return digest.hexdigest()
