"""Tests for BenchmarkOrchestrator, including end-to-end runs on a fake store."""

import logging
import threading
import time

import pytest

from docbench.benchmarks.config import BenchmarkConfig, OperationKind
from docbench.benchmarks.orchestrator import BenchmarkOrchestrator, BenchmarkState
from docbench.client import DocumentStoreConnectionError


def factory_for(client):
    calls = []

    def factory(uri, database, collection):
        calls.append((uri, database, collection))
        return client

    factory.calls = calls
    return factory


class TestBenchmarkOrchestrator:
    def test_end_to_end_insert(self, fake_client, target):
        config = BenchmarkConfig(
            concurrent=4,
            doc_size=200,
            duration_seconds=0.5,
            operation=OperationKind.INSERT,
            no_warmup=True,
        )
        factory = factory_for(fake_client)
        orchestrator = BenchmarkOrchestrator(
            target, config, client_factory=factory, progress_interval=0.1
        )

        result = orchestrator.run()

        assert factory.calls == [(target.uri, "benchmark", "test")]
        assert orchestrator.state is BenchmarkState.DONE
        assert fake_client.closed
        completed = len(fake_client.documents)
        assert completed > 0
        assert len(orchestrator.samples) == completed
        assert result.ops_per_sec == pytest.approx(completed / 0.5)
        assert result.p99_latency_ms >= result.p95_latency_ms
        assert result.errors == 0
        assert result.database == "FerretDB"
        assert result.operation == "insert"
        assert result.concurrent == 4
        assert result.doc_size == 200
        assert result.time_elapsed_s == 0.5
        assert result.warmup_skipped is True

    def test_ops_per_sec_uses_configured_duration(self, fake_client, target, stepping_clock):
        # The stepping clock makes workers finish after a fixed number of
        # iterations regardless of real elapsed time.
        config = BenchmarkConfig(
            concurrent=1,
            duration_seconds=20.0,
            operation=OperationKind.QUERY,
            no_warmup=True,
        )
        orchestrator = BenchmarkOrchestrator(
            target,
            config,
            client_factory=factory_for(fake_client),
            clock=stepping_clock,
            progress_interval=60.0,
        )

        result = orchestrator.run()

        completed = len(fake_client.calls)
        assert completed > 0
        assert result.ops_per_sec == pytest.approx(completed / 20.0)
        assert result.avg_latency_ms == pytest.approx(1000.0)

    def test_errors_are_counted_without_samples(self, failing_client, target, quick_config):
        orchestrator = BenchmarkOrchestrator(
            target, quick_config, client_factory=factory_for(failing_client)
        )

        result = orchestrator.run()

        assert result.errors == len(failing_client.calls)
        assert result.errors > 0
        assert result.ops_per_sec == 0.0
        assert result.avg_latency_ms == 0.0
        assert result.p95_latency_ms == 0.0
        assert orchestrator.samples == []

    def test_warmup_skipped_does_not_sleep(self, fake_client, target, quick_config):
        sleeps = []
        orchestrator = BenchmarkOrchestrator(
            target,
            quick_config,
            client_factory=factory_for(fake_client),
            sleep=sleeps.append,
        )
        result = orchestrator.run()
        assert sleeps == []
        assert result.warmup_skipped is True

    def test_warmup_sleeps_five_minutes_outside_measurement(self, fake_client, target, caplog):
        config = BenchmarkConfig(concurrent=2, duration_seconds=0.2, no_warmup=False)
        sleeps = []
        orchestrator = BenchmarkOrchestrator(
            target, config, client_factory=factory_for(fake_client), sleep=sleeps.append
        )

        with caplog.at_level(logging.INFO, logger="docbench.benchmark"):
            result = orchestrator.run()

        assert sleeps == [300.0]
        assert result.warmup_skipped is False
        assert result.time_elapsed_s == 0.2
        assert "Warming up FerretDB" in caplog.text
        assert "Warmup completed for FerretDB" in caplog.text

    def test_connection_failure_is_fatal(self, target, quick_config):
        def factory(uri, database, collection):
            raise DocumentStoreConnectionError("ping failed")

        orchestrator = BenchmarkOrchestrator(target, quick_config, client_factory=factory)
        with pytest.raises(DocumentStoreConnectionError):
            orchestrator.run()
        assert orchestrator.state is BenchmarkState.CONNECTING

    def test_client_closed_when_warmup_interrupted(self, fake_client, target):
        config = BenchmarkConfig(concurrent=1, duration_seconds=0.1, no_warmup=False)

        def sleep(seconds):
            raise RuntimeError("interrupted")

        orchestrator = BenchmarkOrchestrator(
            target, config, client_factory=factory_for(fake_client), sleep=sleep
        )
        with pytest.raises(RuntimeError):
            orchestrator.run()
        assert fake_client.closed
        assert fake_client.calls == []

    def test_reporter_stopped_after_run(self, fake_client, target, quick_config):
        orchestrator = BenchmarkOrchestrator(
            target, quick_config, client_factory=factory_for(fake_client), progress_interval=0.05
        )
        orchestrator.run()
        time.sleep(0.05)

        names = [thread.name for thread in threading.enumerate()]
        assert not any(name.startswith("docbench-progress") for name in names)
        assert not any(name.startswith("docbench-ferretdb") for name in names)

    def test_unexpected_worker_failure_aborts_run(self, fake_client, target, quick_config):
        def insert_one(document):
            raise TypeError("unencodable document")

        fake_client.insert_one = insert_one
        orchestrator = BenchmarkOrchestrator(
            target, quick_config, client_factory=factory_for(fake_client), progress_interval=0.05
        )
        with pytest.raises(TypeError):
            orchestrator.run()

        assert fake_client.closed
        assert orchestrator.state is BenchmarkState.DRAINING
        names = [thread.name for thread in threading.enumerate()]
        assert not any(name.startswith("docbench-progress") for name in names)
