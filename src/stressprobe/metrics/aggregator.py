from __future__ import annotations

import math
import time
from typing import Callable

from stressprobe.metrics.models import EndpointStats, RunStatistics, Sample, StatsSnapshot, TimelineBucket


class StatsAggregator:
    """Folds samples into a single RunStatistics.

    ``fold`` has no suspension points, so on one event loop every call is
    applied as a unit and the counter invariants hold between calls.
    """

    def __init__(
        self,
        started_at: float,
        duration_sec: float | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.started_at = started_at
        self.stats = RunStatistics()
        self._clock = clock
        self._last_bucket = max(0, math.ceil(duration_sec) - 1) if duration_sec else None

    def fold(self, sample: Sample) -> None:
        stats = self.stats
        latency = sample.latency_ms
        ok = sample.success

        stats.total += 1
        stats.latencies.append(latency)
        stats.outcomes[sample.outcome] = stats.outcomes.get(sample.outcome, 0) + 1
        if sample.status_code is not None:
            stats.status_codes[sample.status_code] = stats.status_codes.get(sample.status_code, 0) + 1
        if sample.error_kind is not None:
            stats.error_kinds[sample.error_kind] = stats.error_kinds.get(sample.error_kind, 0) + 1

        endpoint = stats.endpoints.get(sample.endpoint)
        if endpoint is None:
            endpoint = EndpointStats(sample.endpoint)
            stats.endpoints[sample.endpoint] = endpoint
        endpoint.requests += 1
        endpoint.total_ms += latency
        endpoint.latencies.append(latency)
        endpoint.min_ms = min(endpoint.min_ms, latency)
        endpoint.max_ms = max(endpoint.max_ms, latency)

        bucket = self._bucket_for(sample.completed_at)
        bucket.requests += 1
        bucket.total_ms += latency
        bucket.min_ms = min(bucket.min_ms, latency)
        bucket.max_ms = max(bucket.max_ms, latency)

        if ok:
            stats.successes += 1
            endpoint.successes += 1
            bucket.successes += 1
        else:
            stats.failures += 1
            endpoint.failures += 1
            bucket.failures += 1

    def snapshot(self) -> StatsSnapshot:
        stats = self.stats
        return StatsSnapshot(
            total=stats.total,
            successes=stats.successes,
            failures=stats.failures,
            elapsed_sec=self._clock() - self.started_at,
        )

    def _bucket_for(self, at: float) -> TimelineBucket:
        index = max(0, int(at - self.started_at))
        if self._last_bucket is not None:
            index = min(index, self._last_bucket)
        timeline = self.stats.timeline
        while len(timeline) <= index:
            timeline.append(TimelineBucket(second=len(timeline)))
        return timeline[index]
