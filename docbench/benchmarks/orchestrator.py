from __future__ import annotations

import enum
import logging
import time
from typing import Callable

from ..client import DocumentStoreClient, connect_client
from .config import (
    PROGRESS_INTERVAL_SECONDS,
    WARMUP_SECONDS,
    BenchmarkConfig,
    BenchmarkTarget,
)
from .operations import build_operation
from .progress import ProgressReporter
from .recorder import CounterSnapshot, LatencyRecorder
from .results import BenchmarkResult
from .stats import average_latency, percentile_latency, to_milliseconds
from .workers import WorkerPool

LOGGER = logging.getLogger("docbench.benchmark")

ClientFactory = Callable[[str, str, str], DocumentStoreClient]


class BenchmarkState(enum.Enum):
    PENDING = "pending"
    CONNECTING = "connecting"
    WARMING_UP = "warming-up"
    RUNNING = "running"
    DRAINING = "draining"
    COMPUTING = "computing"
    DONE = "done"


class BenchmarkOrchestrator:
    """Runs one benchmark against one target and reduces it to a result."""

    def __init__(
        self,
        target: BenchmarkTarget,
        config: BenchmarkConfig,
        client_factory: ClientFactory = connect_client,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
        warmup_seconds: float = WARMUP_SECONDS,
    ) -> None:
        self._target = target
        self._config = config
        self._client_factory = client_factory
        self._clock = clock
        self._sleep = sleep
        self._progress_interval = progress_interval
        self._warmup_seconds = warmup_seconds
        self.state = BenchmarkState.PENDING
        self.samples: list[float] = []
        self._counters = CounterSnapshot(operations=0, errors=0)

    def run(self) -> BenchmarkResult:
        """Connect, optionally warm up, measure and compute.

        Raises ``DocumentStoreConnectionError`` when the target cannot be
        reached; the caller treats that as fatal for the whole invocation.
        """
        client = self._connect()
        try:
            self._warm_up()
            self.samples = self._measure(client)
        finally:
            client.close()
        return self._compute(self.samples)

    def _transition(self, state: BenchmarkState) -> None:
        LOGGER.debug("%s: %s -> %s", self._target.name, self.state.value, state.value)
        self.state = state

    def _connect(self) -> DocumentStoreClient:
        self._transition(BenchmarkState.CONNECTING)
        LOGGER.info("Testing connection to %s...", self._target.name)
        client = self._client_factory(
            self._target.uri, self._config.database, self._config.collection
        )
        LOGGER.info("Successfully connected to %s", self._target.name)
        return client

    def _warm_up(self) -> None:
        self._transition(BenchmarkState.WARMING_UP)
        if self._config.no_warmup:
            LOGGER.info("Skipping warmup for %s", self._target.name)
            return
        LOGGER.info(
            "Warming up %s for %.0f seconds...", self._target.name, self._warmup_seconds
        )
        self._sleep(self._warmup_seconds)
        LOGGER.info("Warmup completed for %s", self._target.name)

    def _measure(self, client: DocumentStoreClient) -> list[float]:
        self._transition(BenchmarkState.RUNNING)
        config = self._config
        recorder = LatencyRecorder(expected_samples=config.concurrent * 1000)
        operation = build_operation(config.operation, client, config.doc_size)
        pool = WorkerPool(
            config.concurrent,
            operation,
            recorder,
            clock=self._clock,
            name=f"docbench-{self._target.name.lower()}",
        )

        started_at = self._clock()
        deadline = started_at + config.duration_seconds
        reporter = ProgressReporter(
            self._target.name,
            recorder,
            started_at,
            interval=self._progress_interval,
            clock=self._clock,
        )
        reporter.start()
        LOGGER.info(
            "Starting %d worker threads for %s...", config.concurrent, self._target.name
        )
        try:
            pool.run_until(deadline)
        finally:
            self._transition(BenchmarkState.DRAINING)
            reporter.stop()

        LOGGER.info("Benchmark completed for %s", self._target.name)
        self._counters = recorder.snapshot()
        return recorder.drain()

    def _compute(self, samples: list[float]) -> BenchmarkResult:
        self._transition(BenchmarkState.COMPUTING)
        config = self._config
        counters = self._counters
        result = BenchmarkResult(
            operation=config.operation.value,
            database=self._target.name,
            concurrent=config.concurrent,
            doc_size=config.doc_size,
            # Divided by the configured duration, not the measured wall time.
            ops_per_sec=counters.operations / config.duration_seconds,
            avg_latency_ms=to_milliseconds(average_latency(samples)),
            p95_latency_ms=to_milliseconds(percentile_latency(samples, 0.95)),
            p99_latency_ms=to_milliseconds(percentile_latency(samples, 0.99)),
            errors=counters.errors,
            time_elapsed_s=config.duration_seconds,
            warmup_skipped=config.no_warmup,
        )
        self._transition(BenchmarkState.DONE)
        return result
