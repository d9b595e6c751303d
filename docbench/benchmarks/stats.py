"""Summary statistics over latency samples (seconds in, milliseconds out)."""

from __future__ import annotations

from typing import Sequence

MILLISECONDS_PER_SECOND = 1_000.0


def average_latency(samples: Sequence[float]) -> float:
    if not samples:
        return 0.0
    return sum(samples) / len(samples)


def percentile_latency(samples: Sequence[float], percentile: float) -> float:
    """Nearest-rank percentile: no interpolation between neighbouring samples.

    The rank is ``int(len(samples) * percentile)`` on the ascending order,
    clamped to the last index.
    """
    if not samples:
        return 0.0
    ordered = sorted(samples)
    index = int(len(ordered) * percentile)
    if index >= len(ordered):
        index = len(ordered) - 1
    return ordered[index]


def to_milliseconds(seconds: float) -> float:
    return seconds * MILLISECONDS_PER_SECOND
