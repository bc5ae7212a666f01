"""Removal of index records for files no longer present."""

from __future__ import annotations

import time

from .output import ProgressReporter
from .snapshot import Snapshot
from .store import MetadataStore


def reconcile(
    store: MetadataStore,
    snapshot: Snapshot,
    reporter: ProgressReporter,
    *,
    progress_interval: float = 10.0,
) -> int:
    """Delete every path still left in *snapshot* and return how many were removed.

    Only call this once the walk has drained, so a late hash can never race
    the deletion of the same path.
    """

    stale = snapshot.remaining()
    total = len(stale)
    reporter.removing(total)
    last_report = time.monotonic()
    for count, path in enumerate(stale, start=1):
        store.delete(path)
        if time.monotonic() - last_report > progress_interval:
            reporter.removed(count, total)
            last_report = time.monotonic()
    return total
