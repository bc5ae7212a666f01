"""Bounded per-file work scheduling with hang detection.

Each unit of work runs on its own thread and resolves a ``Future``. At most
``limit`` units may be running below the hard ceiling at once; ``submit``
blocks until a slot frees up. A unit that runs past the ceiling is presumed
stuck on I/O that cannot be interrupted: it stops counting against the limit
but is never cancelled, and its result is still folded in if it finishes.

Finished units are handed back to the submitting thread through a queue, so
result callbacks always run on that thread and need no locking.
"""

from __future__ import annotations

import itertools
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .output import ProgressReporter

ResultCallback = Callable[[str, Any], None]
ErrorCallback = Callable[[str, BaseException], None]


class UnitState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(eq=False)
class WorkItem:
    path: str
    future: Future = field(default_factory=Future)
    state: UnitState = UnitState.QUEUED
    started: float | None = None
    finished: float | None = None

    def elapsed(self, now: float | None = None) -> float:
        if self.started is None:
            return 0.0
        end = self.finished if self.finished is not None else (now or time.monotonic())
        return end - self.started


class WorkScheduler:
    """Run units concurrently while keeping the in-flight count bounded."""

    def __init__(
        self,
        *,
        limit: int,
        running_long_seconds: float,
        abandon_seconds: float,
        reporter: ProgressReporter,
        on_result: ResultCallback,
        on_error: ErrorCallback | None = None,
        monitor_interval: float | None = None,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be greater than 0")
        self.limit = limit
        self.running_long_seconds = running_long_seconds
        self.abandon_seconds = abandon_seconds
        self.monitor_interval = monitor_interval or running_long_seconds
        self.reporter = reporter
        self._on_result = on_result
        self._on_error = on_error
        self._lock = threading.Lock()
        self._running: set[WorkItem] = set()
        self._finished: "queue.Queue[WorkItem]" = queue.Queue()
        self._stop = threading.Event()
        self._monitor_thread: threading.Thread | None = None
        self._ids = itertools.count(1)
        self.submitted = 0
        self.completed = 0

    def __enter__(self) -> "WorkScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def outstanding(self) -> int:
        return self.submitted - self.completed

    def start(self) -> None:
        if self._monitor_thread is not None:
            return
        self._stop.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitor,
            name="hashfs-monitor",
            daemon=True,
        )
        self._monitor_thread.start()

    def close(self) -> None:
        self._stop.set()
        if self._monitor_thread is not None:
            self._monitor_thread.join(timeout=self.monitor_interval)
            self._monitor_thread = None

    def submit(self, path: str, fn: Callable[..., Any], *args: Any) -> Future:
        """Start ``fn(*args)`` for *path* once the concurrency gate allows it."""

        item = WorkItem(path=path)
        self._wait_for_slot()
        item.future.set_running_or_notify_cancel()
        with self._lock:
            item.state = UnitState.RUNNING
            item.started = time.monotonic()
            self._running.add(item)
        self.submitted += 1
        worker = threading.Thread(
            target=self._run,
            args=(item, fn, args),
            name=f"hashfs-unit-{next(self._ids)}",
            daemon=True,
        )
        worker.start()
        self._collect()
        return item.future

    def drain(self) -> None:
        """Block until every submitted unit has finished, stuck ones included."""

        while self.outstanding > 0:
            try:
                item = self._finished.get(timeout=self.monitor_interval)
            except queue.Empty:
                continue
            self._fold(item)

    def active_count(self) -> int:
        """Number of running units still counted against the limit."""
        with self._lock:
            return sum(1 for item in self._running if item.state is UnitState.RUNNING)

    def running_items(self) -> list[WorkItem]:
        with self._lock:
            return list(self._running)

    def check_running(self) -> None:
        """Report units past the soft threshold and abandon those past the ceiling."""

        now = time.monotonic()
        with self._lock:
            newly_abandoned = self._mark_abandoned(now)
            running_long = [
                (item.path, item.elapsed(now))
                for item in self._running
                if item.elapsed(now) > self.running_long_seconds
            ]
        for path, elapsed in running_long:
            self.reporter.running_long(path, elapsed)
        for path, elapsed in newly_abandoned:
            self.reporter.abandoned(path, elapsed)

    def _run(self, item: WorkItem, fn: Callable[..., Any], args: tuple) -> None:
        result: Any = None
        error: Exception | None = None
        try:
            result = fn(*args)
        except Exception as exc:
            error = exc
        with self._lock:
            item.finished = time.monotonic()
            item.state = UnitState.COMPLETED
            self._running.discard(item)
        # a resolved future never belongs to a unit still in the registry
        if error is not None:
            item.future.set_exception(error)
        else:
            item.future.set_result(result)
        self._finished.put(item)

    def _monitor(self) -> None:
        while not self._stop.wait(self.monitor_interval):
            self.check_running()

    def _mark_abandoned(self, now: float) -> list[tuple[str, float]]:
        # caller holds self._lock
        newly: list[tuple[str, float]] = []
        for item in self._running:
            if item.state is UnitState.RUNNING and item.elapsed(now) >= self.abandon_seconds:
                item.state = UnitState.ABANDONED
                newly.append((item.path, item.elapsed(now)))
        return newly

    def _wait_for_slot(self) -> None:
        while True:
            self._collect()
            now = time.monotonic()
            with self._lock:
                newly_abandoned = self._mark_abandoned(now)
                active = [item for item in self._running if item.state is UnitState.RUNNING]
            for path, elapsed in newly_abandoned:
                self.reporter.abandoned(path, elapsed)
            if len(active) < self.limit:
                return
            next_ceiling = min(item.started + self.abandon_seconds for item in active)
            timeout = min(max(next_ceiling - now, 0.0), self.monitor_interval)
            try:
                item = self._finished.get(timeout=timeout)
            except queue.Empty:
                if timeout >= self.monitor_interval:
                    self.reporter.waiting(len(active))
                continue
            self._fold(item)

    def _collect(self) -> None:
        while True:
            try:
                item = self._finished.get_nowait()
            except queue.Empty:
                return
            self._fold(item)

    def _fold(self, item: WorkItem) -> None:
        self.completed += 1
        elapsed = item.elapsed()
        if elapsed > self.running_long_seconds:
            self.reporter.finished_long(item.path, elapsed)
        error = item.future.exception()
        if error is not None:
            self.reporter.unit_failed(item.path, error)
            if self._on_error is not None:
                self._on_error(item.path, error)
            return
        self._on_result(item.path, item.future.result())
