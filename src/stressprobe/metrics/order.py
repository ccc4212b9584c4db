from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

DEFAULT_HISTOGRAM_BUCKETS = 10
REPORTED_PERCENTILES = (50, 75, 90, 95, 99)


@dataclass(frozen=True, slots=True)
class HistogramBucket:
    lower_ms: float
    upper_ms: float
    count: int


@dataclass(frozen=True, slots=True)
class LatencySummary:
    count: int
    min_ms: float | None
    max_ms: float | None
    mean_ms: float | None
    std_dev_ms: float
    p50_ms: float | None
    p75_ms: float | None
    p90_ms: float | None
    p95_ms: float | None
    p99_ms: float | None


def percentile(sorted_values: Sequence[float] | np.ndarray, p: float) -> float | None:
    """Nearest-rank percentile over values already sorted ascending.

    Returns ``None`` for an empty input.
    """
    n = len(sorted_values)
    if n == 0:
        return None
    index = math.ceil((p / 100) * n) - 1
    index = min(n - 1, max(0, index))
    return float(sorted_values[index])


def std_dev(values: Sequence[float] | np.ndarray) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def histogram(values: Sequence[float] | np.ndarray, bucket_count: int = DEFAULT_HISTOGRAM_BUCKETS) -> list[HistogramBucket]:
    if bucket_count < 1:
        msg = f"bucket_count must be >= 1, got {bucket_count}"
        raise ValueError(msg)
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return []
    low = float(arr.min())
    high = float(arr.max())
    width = (high - low) / bucket_count or 1.0
    indexes = np.clip(np.floor((arr - low) / width).astype(np.int64), 0, bucket_count - 1)
    counts = np.bincount(indexes, minlength=bucket_count)
    return [
        HistogramBucket(lower_ms=low + i * width, upper_ms=low + (i + 1) * width, count=int(counts[i]))
        for i in range(bucket_count)
    ]


def summarize_latencies(values: Sequence[float] | np.ndarray) -> LatencySummary:
    arr = np.sort(np.asarray(values, dtype=float))
    if arr.size == 0:
        return LatencySummary(0, None, None, None, 0.0, None, None, None, None, None)
    p50, p75, p90, p95, p99 = (percentile(arr, p) for p in REPORTED_PERCENTILES)
    return LatencySummary(
        count=int(arr.size),
        min_ms=float(arr[0]),
        max_ms=float(arr[-1]),
        mean_ms=float(arr.mean()),
        std_dev_ms=std_dev(arr),
        p50_ms=p50,
        p75_ms=p75,
        p90_ms=p90,
        p95_ms=p95,
        p99_ms=p99,
    )
