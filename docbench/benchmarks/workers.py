from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..client import DocumentStoreError
from .operations import Operation
from .recorder import LatencyRecorder

LOGGER = logging.getLogger("docbench.benchmark.workers")

Clock = Callable[[], float]


def run_worker(
    operation: Operation,
    recorder: LatencyRecorder,
    deadline: float,
    clock: Clock = time.monotonic,
) -> None:
    """Issue operations back to back until ``clock()`` reaches ``deadline``.

    The deadline is only checked between operations; a call already in flight
    is allowed to finish past it. Failures are counted and the loop continues
    at once, without a sample, retry or delay.
    """
    while True:
        started = clock()
        if started >= deadline:
            return
        try:
            operation()
        except DocumentStoreError:
            recorder.record_error()
            continue
        recorder.record_success(clock() - started)


class WorkerPool:
    """Fixed set of threads sharing one operation and one recorder."""

    def __init__(
        self,
        concurrency: int,
        operation: Operation,
        recorder: LatencyRecorder,
        clock: Clock = time.monotonic,
        name: str = "docbench-worker",
    ) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self._concurrency = concurrency
        self._operation = operation
        self._recorder = recorder
        self._clock = clock
        self._name = name
        self._threads: list[threading.Thread] = []
        self._failures: list[Exception] = []
        self._failures_lock = threading.Lock()

    def start(self, deadline: float) -> None:
        if self._threads:
            raise RuntimeError("worker pool already started")
        for idx in range(self._concurrency):
            thread = threading.Thread(
                target=self._run,
                args=(deadline,),
                name=f"{self._name}-{idx}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def _run(self, deadline: float) -> None:
        try:
            run_worker(self._operation, self._recorder, deadline, self._clock)
        except Exception as exc:
            LOGGER.exception("Worker %s failed", threading.current_thread().name)
            with self._failures_lock:
                self._failures.append(exc)

    def join(self) -> None:
        """Wait for every worker, then re-raise the first unexpected failure."""
        for thread in self._threads:
            thread.join()
        with self._failures_lock:
            failures = list(self._failures)
        if failures:
            raise failures[0]

    def run_until(self, deadline: float) -> None:
        self.start(deadline)
        self.join()
