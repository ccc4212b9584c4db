from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class Outcome(str, Enum):
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True, slots=True)
class Sample:
    endpoint: str
    latency_ms: float
    outcome: Outcome
    completed_at: float  # perf_counter() at the terminal event
    status_code: int | None = None
    error_kind: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass(slots=True)
class EndpointStats:
    endpoint: str
    requests: int = 0
    successes: int = 0
    failures: int = 0
    total_ms: float = 0.0
    min_ms: float = math.inf
    max_ms: float = 0.0
    latencies: list[float] = field(default_factory=list)


@dataclass(slots=True)
class TimelineBucket:
    second: int
    requests: int = 0
    successes: int = 0
    failures: int = 0
    total_ms: float = 0.0
    min_ms: float = math.inf
    max_ms: float = 0.0

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.requests if self.requests else 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "second": self.second,
            "requests": self.requests,
            "successes": self.successes,
            "failures": self.failures,
            "mean_ms": self.mean_ms,
            "min_ms": None if math.isinf(self.min_ms) else self.min_ms,
            "max_ms": self.max_ms,
        }


@dataclass(slots=True)
class RunStatistics:
    """Raw accumulations for one run. Derived statistics are computed at report time."""

    total: int = 0
    successes: int = 0
    failures: int = 0
    outcomes: dict[Outcome, int] = field(default_factory=dict)
    status_codes: dict[int, int] = field(default_factory=dict)
    error_kinds: dict[str, int] = field(default_factory=dict)
    latencies: list[float] = field(default_factory=list)
    endpoints: dict[str, EndpointStats] = field(default_factory=dict)
    timeline: list[TimelineBucket] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    total: int
    successes: int
    failures: int
    elapsed_sec: float

    @property
    def rps(self) -> float:
        return self.total / max(0.1, self.elapsed_sec)

    @property
    def success_rate(self) -> float:
        return (self.successes / self.total) * 100 if self.total else 0.0
