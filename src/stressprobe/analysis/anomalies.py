from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from stressprobe.config import AnomalyThresholds
from stressprobe.metrics import Sample

logger = logging.getLogger(__name__)


class AnomalyKind(str, Enum):
    SLOW_RESPONSE = "slow_response"
    FAILURE_BURST = "failure_burst"


@dataclass(frozen=True, slots=True)
class AnomalyRecord:
    at_sec: float
    kind: AnomalyKind
    endpoint: str
    value: float  # latency in ms, or consecutive failure count
    threshold: float
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "at_sec": round(self.at_sec, 3),
            "kind": self.kind.value,
            "endpoint": self.endpoint,
            "value": self.value,
            "threshold": self.threshold,
            **dict(self.details),
        }


class AnomalyDetector:
    def __init__(self, thresholds: AnomalyThresholds, started_at: float) -> None:
        self.thresholds = thresholds
        self.started_at = started_at
        self.consecutive_failures = 0
        self.max_consecutive_failures = 0
        self.records: list[AnomalyRecord] = []

    def observe(self, sample: Sample) -> AnomalyRecord | None:
        if sample.success:
            self.consecutive_failures = 0
            if sample.latency_ms > self.thresholds.slow_response_ms:
                return self._record(
                    sample,
                    AnomalyKind.SLOW_RESPONSE,
                    value=sample.latency_ms,
                    threshold=self.thresholds.slow_response_ms,
                )
            return None

        self.consecutive_failures += 1
        self.max_consecutive_failures = max(self.max_consecutive_failures, self.consecutive_failures)
        # fires once per burst, on the threshold-th failure only
        if self.consecutive_failures == self.thresholds.burst_failures:
            return self._record(
                sample,
                AnomalyKind.FAILURE_BURST,
                value=float(self.consecutive_failures),
                threshold=float(self.thresholds.burst_failures),
                details={"error": _failure_label(sample)},
            )
        return None

    def count(self, kind: AnomalyKind) -> int:
        return sum(1 for record in self.records if record.kind is kind)

    def _record(
        self,
        sample: Sample,
        kind: AnomalyKind,
        value: float,
        threshold: float,
        details: Mapping[str, Any] | None = None,
    ) -> AnomalyRecord:
        record = AnomalyRecord(
            at_sec=max(0.0, sample.completed_at - self.started_at),
            kind=kind,
            endpoint=sample.endpoint,
            value=value,
            threshold=threshold,
            details=details or {},
        )
        self.records.append(record)
        logger.warning("%s on %s at %.2fs (%.1f > %.1f)", kind.value, sample.endpoint, record.at_sec, value, threshold)
        return record


def _failure_label(sample: Sample) -> str:
    if sample.error_kind:
        return sample.error_kind
    if sample.status_code is not None:
        return f"HTTP {sample.status_code}"
    return sample.outcome.value
