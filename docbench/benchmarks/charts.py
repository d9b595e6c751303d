from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .results import BenchmarkResult

LOGGER = logging.getLogger("docbench.benchmark.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 300
plt.rcParams["font.size"] = 10
plt.rcParams["axes.titlesize"] = 13

DATABASE_COLORS = {
    "FerretDB": "#2E86AB",
    "MongoDB": "#6A994E",
}
LATENCY_METRICS = {
    "avg_latency_ms": "Average",
    "p95_latency_ms": "P95",
    "p99_latency_ms": "P99",
}


def comparison_chart_filename(operation: str, timestamp: int) -> str:
    return f"comparison_{operation}_{timestamp}.png"


def render_comparison_chart(results: Sequence[BenchmarkResult], chart_path: Path) -> Path:
    """Render throughput and latency bars for each benchmarked database."""
    if not results:
        raise ValueError("No benchmark results to chart")

    fig, (throughput_ax, latency_ax) = plt.subplots(1, 2, figsize=(14, 6))
    _render_throughput(results, throughput_ax)
    _render_latency(results, latency_ax)

    operation = results[0].operation
    fig.suptitle(f"{operation.title()} Benchmark", fontweight="bold")
    plt.tight_layout()
    chart_path = Path(chart_path)
    chart_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path


def _render_throughput(results: Sequence[BenchmarkResult], ax: plt.Axes) -> None:
    labels = [result.database for result in results]
    values = [result.ops_per_sec for result in results]
    bars = ax.bar(
        labels,
        values,
        color=[DATABASE_COLORS.get(label, "#808080") for label in labels],
        alpha=0.8,
        edgecolor="white",
        linewidth=2,
    )
    ax.set_ylabel("Throughput (ops/sec)", fontweight="semibold")
    ax.set_title("Throughput", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")

    for bar in bars:
        height = bar.get_height()
        ax.text(
            bar.get_x() + bar.get_width() / 2.0,
            height,
            f"{height:.1f}",
            ha="center",
            va="bottom",
            fontweight="semibold",
        )


def _render_latency(results: Sequence[BenchmarkResult], ax: plt.Axes) -> None:
    df = pd.DataFrame([result.to_dict() for result in results])
    metrics = list(LATENCY_METRICS)
    positions = np.arange(len(metrics))
    width = 0.8 / max(len(df), 1)

    for offset, (_, row) in enumerate(df.iterrows()):
        ax.bar(
            positions + offset * width - 0.4 + width / 2,
            [row[metric] for metric in metrics],
            width,
            label=row["database"],
            color=DATABASE_COLORS.get(row["database"], "#808080"),
            alpha=0.8,
            edgecolor="white",
        )

    ax.set_xticks(positions)
    ax.set_xticklabels([LATENCY_METRICS[metric] for metric in metrics])
    ax.set_ylabel("Latency (ms)", fontweight="semibold")
    ax.set_title("Latency", fontweight="bold", pad=15)
    ax.set_ylim(bottom=0)
    ax.legend(loc="upper left", frameon=True)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")
