from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .config import PROGRESS_INTERVAL_SECONDS
from .recorder import LatencyRecorder

LOGGER = logging.getLogger("docbench.benchmark.progress")


class ProgressReporter:
    """Logs a throughput snapshot every ``interval`` seconds until stopped."""

    def __init__(
        self,
        label: str,
        recorder: LatencyRecorder,
        started_at: float,
        interval: float = PROGRESS_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._label = label
        self._recorder = recorder
        self._started_at = started_at
        self._interval = interval
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        thread = threading.Thread(
            target=self._run, name=f"docbench-progress-{self._label}", daemon=True
        )
        thread.start()
        self._thread = thread

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join()
            self._thread = None

    def report(self) -> bool:
        """Emit one progress line; returns False when nothing could be computed."""
        snapshot = self._recorder.snapshot()
        elapsed = self._clock() - self._started_at
        if elapsed <= 0:
            return False
        LOGGER.info(
            "[Progress] %s - Ops: %d, Errors: %d, Rate: %.2f ops/sec",
            self._label,
            snapshot.operations,
            snapshot.errors,
            snapshot.operations / elapsed,
        )
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            self.report()
