from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

import numpy as np

from stressprobe.analysis import AnomalyKind, AnomalyRecord, Rating, rate_performance
from stressprobe.metrics import (
    HistogramBucket,
    LatencySummary,
    Outcome,
    RunStatistics,
    TimelineBucket,
    histogram,
    percentile,
    summarize_latencies,
)

if TYPE_CHECKING:
    from stressprobe.loadgen.health import HealthChange


@dataclass(frozen=True, slots=True)
class EndpointReport:
    endpoint: str
    requests: int
    successes: int
    failures: int
    success_rate: float
    mean_ms: float
    p95_ms: float | None
    min_ms: float | None
    max_ms: float


@dataclass(frozen=True, slots=True)
class RunReport:
    run_id: str
    base_url: str
    elapsed_sec: float
    total: int
    successes: int
    failures: int
    success_rate: float
    throughput_rps: float
    outcomes: Mapping[str, int]
    latency: LatencySummary
    histogram: list[HistogramBucket]
    status_codes: Mapping[int, int]
    error_kinds: Mapping[str, int]
    endpoints: list[EndpointReport]
    timeline: list[TimelineBucket]
    anomalies: list[AnomalyRecord]
    max_consecutive_failures: int
    rating: Rating
    health_before: Mapping[str, Any] | None = None
    health_after: Mapping[str, Any] | None = None
    health_changes: list[HealthChange] = field(default_factory=list)

    @property
    def slow_responses(self) -> int:
        return sum(1 for a in self.anomalies if a.kind is AnomalyKind.SLOW_RESPONSE)

    @property
    def failure_bursts(self) -> int:
        return sum(1 for a in self.anomalies if a.kind is AnomalyKind.FAILURE_BURST)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "base_url": self.base_url,
            "elapsed_sec": self.elapsed_sec,
            "total": self.total,
            "successes": self.successes,
            "failures": self.failures,
            "success_rate": self.success_rate,
            "throughput_rps": self.throughput_rps,
            "outcomes": dict(self.outcomes),
            "latency": asdict(self.latency),
            "histogram": [asdict(b) for b in self.histogram],
            "status_codes": {str(code): count for code, count in sorted(self.status_codes.items())},
            "error_kinds": dict(self.error_kinds),
            "endpoints": [asdict(e) for e in self.endpoints],
            "timeline": [b.to_dict() for b in self.timeline],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "max_consecutive_failures": self.max_consecutive_failures,
            "rating": {"stars": self.rating.stars, "label": self.rating.label, "notes": list(self.rating.notes)},
            "health_before": self.health_before,
            "health_after": self.health_after,
            "health_changes": [
                {"source": c.source, "field": c.field, "before": c.before, "after": c.after, "delta": c.delta}
                for c in self.health_changes
            ],
        }


def build_report(
    run_id: str,
    base_url: str,
    stats: RunStatistics,
    anomalies: list[AnomalyRecord],
    max_consecutive_failures: int,
    elapsed_sec: float,
    health_before: Mapping[str, Any] | None = None,
    health_after: Mapping[str, Any] | None = None,
    health_changes: list[HealthChange] | None = None,
) -> RunReport:
    latency = summarize_latencies(stats.latencies)
    success_rate = (stats.successes / stats.total) * 100 if stats.total else 0.0
    throughput = stats.total / elapsed_sec if elapsed_sec > 0 else 0.0
    return RunReport(
        run_id=run_id,
        base_url=base_url,
        elapsed_sec=elapsed_sec,
        total=stats.total,
        successes=stats.successes,
        failures=stats.failures,
        success_rate=success_rate,
        throughput_rps=throughput,
        outcomes={outcome.value: stats.outcomes.get(outcome, 0) for outcome in Outcome},
        latency=latency,
        histogram=histogram(stats.latencies),
        status_codes=dict(stats.status_codes),
        error_kinds=dict(sorted(stats.error_kinds.items(), key=lambda item: item[1], reverse=True)),
        endpoints=_endpoint_reports(stats),
        timeline=list(stats.timeline),
        anomalies=list(anomalies),
        max_consecutive_failures=max_consecutive_failures,
        rating=rate_performance(success_rate, throughput, latency.p95_ms, max_consecutive_failures),
        health_before=health_before,
        health_after=health_after,
        health_changes=list(health_changes or []),
    )


def _endpoint_reports(stats: RunStatistics) -> list[EndpointReport]:
    rows: list[EndpointReport] = []
    for ep in stats.endpoints.values():
        times = np.sort(np.asarray(ep.latencies, dtype=float))
        rows.append(
            EndpointReport(
                endpoint=ep.endpoint,
                requests=ep.requests,
                successes=ep.successes,
                failures=ep.failures,
                success_rate=(ep.successes / ep.requests) * 100 if ep.requests else 0.0,
                mean_ms=ep.total_ms / ep.requests if ep.requests else 0.0,
                p95_ms=percentile(times, 95),
                min_ms=None if math.isinf(ep.min_ms) else ep.min_ms,
                max_ms=ep.max_ms,
            )
        )
    rows.sort(key=lambda row: row.requests, reverse=True)
    return rows
