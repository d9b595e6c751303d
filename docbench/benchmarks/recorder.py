from __future__ import annotations

import logging
import threading
from typing import NamedTuple

LOGGER = logging.getLogger("docbench.benchmark.recorder")


class RecorderClosedError(Exception):
    """Raised when a recorder is used after its samples were drained."""


class CounterSnapshot(NamedTuple):
    operations: int
    errors: int


class LatencyRecorder:
    """Collects latency samples and operation/error counters from many workers.

    Samples live in an unbounded list guarded by a lock: producers never block
    on a full buffer and nothing is dropped, at the cost of memory growing
    with the number of successful operations. ``drain`` hands the samples to
    the single consumer exactly once, after every producer has stopped.
    """

    def __init__(self, expected_samples: int | None = None) -> None:
        self._lock = threading.Lock()
        self._samples: list[float] = []
        self._operations = 0
        self._errors = 0
        self._closed = False
        if expected_samples is not None:
            LOGGER.debug("Recorder sized for roughly %d samples", expected_samples)

    def record_success(self, duration_s: float) -> None:
        with self._lock:
            if self._closed:
                raise RecorderClosedError("recorder already drained")
            self._samples.append(duration_s)
            self._operations += 1

    def record_error(self) -> None:
        with self._lock:
            if self._closed:
                raise RecorderClosedError("recorder already drained")
            self._errors += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(operations=self._operations, errors=self._errors)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def drain(self) -> list[float]:
        with self._lock:
            if self._closed:
                raise RecorderClosedError("recorder already drained")
            self._closed = True
            samples, self._samples = self._samples, []
        return samples
