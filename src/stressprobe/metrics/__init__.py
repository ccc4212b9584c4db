from __future__ import annotations

from stressprobe.metrics.aggregator import StatsAggregator
from stressprobe.metrics.models import (
    EndpointStats,
    Outcome,
    RunStatistics,
    Sample,
    StatsSnapshot,
    TimelineBucket,
)
from stressprobe.metrics.order import (
    HistogramBucket,
    LatencySummary,
    histogram,
    percentile,
    std_dev,
    summarize_latencies,
)

__all__ = [
    "EndpointStats",
    "HistogramBucket",
    "LatencySummary",
    "Outcome",
    "RunStatistics",
    "Sample",
    "StatsAggregator",
    "StatsSnapshot",
    "TimelineBucket",
    "histogram",
    "percentile",
    "std_dev",
    "summarize_latencies",
]
