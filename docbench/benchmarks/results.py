from __future__ import annotations

import dataclasses
import datetime as dt
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from .config import format_duration
from .stats import to_milliseconds

LOGGER = logging.getLogger("docbench.benchmark.results")


@dataclass(frozen=True)
class BenchmarkResult:
    operation: str
    database: str
    concurrent: int
    doc_size: int
    ops_per_sec: float
    avg_latency_ms: float
    p95_latency_ms: float
    p99_latency_ms: float
    errors: int
    time_elapsed_s: float
    warmup_skipped: bool

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def format_result(result: BenchmarkResult) -> str:
    lines = [f"Results for {result.database} ({result.operation}):"]
    if result.warmup_skipped:
        lines.append("Warmup: Skipped")
    else:
        lines.append("Warmup: Completed (5 minutes)")
    lines.extend(
        [
            f"Operations/sec: {result.ops_per_sec:.2f}",
            f"Average Latency: {result.avg_latency_ms:.2f} ms",
            f"P95 Latency: {result.p95_latency_ms:.2f} ms",
            f"P99 Latency: {result.p99_latency_ms:.2f} ms",
            f"Errors: {result.errors}",
            f"Time Elapsed: {format_duration(result.time_elapsed_s)}",
        ]
    )
    return "\n".join(lines)


def print_result(result: BenchmarkResult) -> None:
    print()
    print(format_result(result))


def results_filename(operation: str, now: float | None = None) -> str:
    timestamp = int(time.time() if now is None else now)
    return f"results_{operation}_{timestamp}.json"


def save_results(
    ferretdb: BenchmarkResult,
    mongodb: BenchmarkResult,
    output_dir: Path,
    now: dt.datetime | None = None,
) -> Path | None:
    """Write both results as JSON; failures are logged and never raised."""
    now = now or dt.datetime.now(dt.timezone.utc)
    payload = {
        "ferretdb": ferretdb.to_dict(),
        "mongodb": mongodb.to_dict(),
        "time": now.isoformat(),
    }
    path = Path(output_dir) / results_filename(ferretdb.operation, now.timestamp())
    try:
        data = json.dumps(payload, indent=2)
    except (TypeError, ValueError):
        LOGGER.exception("Error marshaling results")
        return None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, encoding="utf-8")
    except OSError:
        LOGGER.exception("Error saving results to %s", path)
        return None
    LOGGER.info("Results written to %s", path)
    return path


def build_samples_dataframe(samples: Mapping[str, Sequence[float]]) -> pd.DataFrame:
    rows = [
        {"database": database, "latency_ms": to_milliseconds(sample)}
        for database, values in samples.items()
        for sample in values
    ]
    if not rows:
        return pd.DataFrame(columns=["database", "latency_ms"])
    return pd.DataFrame(rows)


def export_samples(
    samples: Mapping[str, Sequence[float]],
    output_dir: Path,
    operation: str,
    now: float | None = None,
) -> Path | None:
    timestamp = int(time.time() if now is None else now)
    path = Path(output_dir) / f"samples_{operation}_{timestamp}.csv"
    df = build_samples_dataframe(samples)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)
    except OSError:
        LOGGER.exception("Error saving latency samples to %s", path)
        return None
    LOGGER.info("Saved %d latency samples to %s", len(df), path)
    return path
