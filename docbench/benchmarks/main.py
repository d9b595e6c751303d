from __future__ import annotations

import argparse
import datetime as dt
import logging
import os
import sys
from pathlib import Path

from ..client import DocumentStoreConnectionError
from .charts import comparison_chart_filename, render_comparison_chart
from .config import (
    DEFAULT_FERRETDB_URI,
    DEFAULT_MONGODB_URI,
    BenchmarkConfig,
    OperationKind,
    format_duration,
    parse_duration,
)
from .orchestrator import BenchmarkOrchestrator
from .results import BenchmarkResult, export_samples, print_result, save_results

LOGGER = logging.getLogger("docbench.benchmark")


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="FerretDB vs MongoDB CRUD benchmark")
    parser.add_argument(
        "--ferretdb",
        default=os.environ.get("FERRETDB_URI", DEFAULT_FERRETDB_URI),
        help="FerretDB connection URI",
    )
    parser.add_argument(
        "--mongodb",
        default=os.environ.get("MONGODB_URI", DEFAULT_MONGODB_URI),
        help="MongoDB connection URI",
    )
    parser.add_argument("--db", default="benchmark", help="Database name")
    parser.add_argument("--collection", default="test", help="Collection name")
    parser.add_argument(
        "--concurrent", type=int, default=10, help="Number of concurrent workers"
    )
    parser.add_argument(
        "--docsize", type=int, default=1024, help="Document size in bytes"
    )
    parser.add_argument(
        "--duration",
        type=_duration,
        default=parse_duration("5m"),
        help="Test duration, e.g. 30s, 5m, 1h30m",
    )
    parser.add_argument(
        "--op",
        choices=[kind.value for kind in OperationKind],
        default=OperationKind.INSERT.value,
        help="Operation type",
    )
    parser.add_argument(
        "--rw",
        type=float,
        default=0.7,
        help="Read/Write ratio (0.7 means 70%% reads)",
    )
    parser.add_argument(
        "--no-warmup", action="store_true", help="Skip the 5 minute warmup phase"
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("BENCHMARK_OUTPUT_DIR", "."),
        help="Directory for the JSON results and optional artefacts",
    )
    parser.add_argument(
        "--export-samples",
        action="store_true",
        help="Also write every latency sample to a CSV file",
    )
    parser.add_argument(
        "--charts",
        action="store_true",
        help="Render a throughput/latency comparison chart",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the configuration without connecting",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("BENCHMARK_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    return BenchmarkConfig(
        ferretdb_uri=args.ferretdb,
        mongodb_uri=args.mongodb,
        database=args.db,
        collection=args.collection,
        concurrent=args.concurrent,
        doc_size=args.docsize,
        duration_seconds=args.duration,
        operation=OperationKind(args.op),
        read_write_ratio=args.rw,
        no_warmup=args.no_warmup,
    )


def log_config(config: BenchmarkConfig) -> None:
    LOGGER.info("Starting benchmark with configuration:")
    LOGGER.info("- Operation: %s", config.operation.value)
    LOGGER.info("- Duration: %s", format_duration(config.duration_seconds))
    LOGGER.info("- Concurrent connections: %d", config.concurrent)
    LOGGER.info("- Document size: %d bytes", config.doc_size)
    LOGGER.info("- Warmup: %s", not config.no_warmup)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    log_config(config)
    if args.dry_run:
        for target in config.targets():
            print(f"  - {target.name}: {target.uri}")
        return 0

    output_dir = Path(args.output_dir)
    results: list[BenchmarkResult] = []
    samples: dict[str, list[float]] = {}
    for target in config.targets():
        LOGGER.info("Starting %s benchmark...", target.name)
        orchestrator = BenchmarkOrchestrator(target, config)
        try:
            result = orchestrator.run()
        except DocumentStoreConnectionError:
            LOGGER.exception("Failed to connect to %s", target.name)
            return 1
        print_result(result)
        results.append(result)
        samples[target.name] = orchestrator.samples

    ferretdb_result, mongodb_result = results
    now = dt.datetime.now(dt.timezone.utc)
    timestamp = int(now.timestamp())
    save_results(ferretdb_result, mongodb_result, output_dir, now=now)

    if args.export_samples:
        export_samples(samples, output_dir, config.operation.value, now=timestamp)
    if args.charts:
        chart_path = output_dir / comparison_chart_filename(
            config.operation.value, timestamp
        )
        try:
            render_comparison_chart(results, chart_path)
        except (OSError, ValueError):
            LOGGER.exception("Error rendering comparison chart")
    return 0


if __name__ == "__main__":
    sys.exit(main())
