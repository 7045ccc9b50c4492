from __future__ import annotations

import math
import statistics
from dataclasses import asdict, dataclass
from typing import Sequence

__all__ = ["percentile", "LatencySummary", "summarize_latencies", "BenchmarkStats", "benchmark_stats"]


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank-below percentile: ``sorted[floor(p/100 * (n-1))]``; 0 when empty."""
    if not values:
        return 0.0
    ordered = sorted(values)
    idx = math.floor((p / 100.0) * (len(ordered) - 1))
    return ordered[idx]


@dataclass(frozen=True, slots=True)
class LatencySummary:
    p50: int
    p90: int
    p99: int
    min: int
    max: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def summarize_latencies(values: Sequence[float]) -> LatencySummary:
    if not values:
        return LatencySummary(p50=0, p90=0, p99=0, min=0, max=0)
    return LatencySummary(
        p50=round(percentile(values, 50)),
        p90=round(percentile(values, 90)),
        p99=round(percentile(values, 99)),
        min=round(min(values)),
        max=round(max(values)),
    )


@dataclass(frozen=True, slots=True)
class BenchmarkStats:
    mean: float
    median: float
    stddev: float
    min: float
    max: float
    p95: float
    p99: float


def benchmark_stats(values: Sequence[float]) -> BenchmarkStats:
    """Aggregate benchmark latencies; ``values`` must not be empty."""
    if not values:
        raise ValueError("no latencies to aggregate")
    ordered = sorted(values)
    n = len(ordered)
    p99_idx = math.floor(n * 0.99)
    return BenchmarkStats(
        mean=statistics.fmean(ordered),
        median=ordered[n // 2],
        stddev=statistics.pstdev(ordered),
        min=ordered[0],
        max=ordered[-1],
        p95=ordered[min(math.floor(n * 0.95), n - 1)],
        p99=ordered[p99_idx] if p99_idx < n else ordered[-1],
    )
