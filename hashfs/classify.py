"""Staleness classification for observed files."""

from __future__ import annotations

from collections import Counter
from enum import Enum


class ProcessResult(str, Enum):
    CACHED = "cached"
    NEWLY_HASHED = "newly_hashed"
    REHASHED_DUE_TO_SIZE = "rehashed_due_to_size"
    REHASHED_DUE_TO_MODIFIED_DATE = "rehashed_due_to_modified_date"
    ZERO_LENGTH = "zero_length"
    FAILED = "failed"

    @property
    def needs_hash(self) -> bool:
        return self in _HASHING_RESULTS


_HASHING_RESULTS = frozenset(
    {
        ProcessResult.NEWLY_HASHED,
        ProcessResult.REHASHED_DUE_TO_SIZE,
        ProcessResult.REHASHED_DUE_TO_MODIFIED_DATE,
    }
)


def classify(
    size: int,
    modified: str,
    previous: tuple[int, str] | None,
) -> ProcessResult:
    """Decide what to do with a file given its prior ``(size, modified)`` record.

    A full match is cached even when the stored hash was never computed; only
    the metadata pair is trusted. Zero-length files never need reading. A size
    change wins over a timestamp change when both differ.
    """

    if previous is not None and (size, modified) == tuple(previous):
        return ProcessResult.CACHED
    if size == 0:
        return ProcessResult.ZERO_LENGTH
    if previous is None:
        return ProcessResult.NEWLY_HASHED
    if size != previous[0]:
        return ProcessResult.REHASHED_DUE_TO_SIZE
    return ProcessResult.REHASHED_DUE_TO_MODIFIED_DATE


class ResultTally:
    """Running count of unit outcomes, one bucket per ProcessResult."""

    def __init__(self) -> None:
        self._counts: Counter[ProcessResult] = Counter()

    def add(self, result: ProcessResult) -> None:
        self._counts[result] += 1

    def __getitem__(self, result: ProcessResult) -> int:
        return self._counts[result]

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def describe(self) -> str:
        return " ".join(f"{result.value}={self._counts[result]}" for result in ProcessResult)
