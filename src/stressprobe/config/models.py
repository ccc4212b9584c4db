from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

DEFAULT_ENDPOINTS: tuple[str, ...] = (
    "/ping",
    "/api/socket-status",
    "/api/network-status",
    "/api/i2c-status",
    "/api/oled-status",
)

DEFAULT_HEALTH_PATHS: tuple[str, ...] = (
    "/api/socket-status",
    "/api/oled-status",
    "/api/i2c-status",
    "/api/timing",
)


class ConfigError(ValueError):
    """Raised when a run configuration cannot be used to start a run."""


def normalize_base_url(target: str) -> str:
    target = target.strip()
    if not target:
        msg = "Target address must not be empty"
        raise ConfigError(msg)
    if "://" not in target:
        target = f"http://{target}"
    return target.rstrip("/")


@dataclass(frozen=True, slots=True)
class AnomalyThresholds:
    slow_response_ms: float = 500.0
    burst_failures: int = 3


@dataclass(frozen=True, slots=True)
class RunConfig:
    base_url: str
    endpoints: tuple[str, ...] = DEFAULT_ENDPOINTS
    concurrency: int = 5
    duration_sec: float = 10.0
    timeout_ms: float = 3000.0
    thresholds: AnomalyThresholds = field(default_factory=AnomalyThresholds)
    probe_path: str | None = None
    health_paths: tuple[str, ...] = ()
    health_timeout_sec: float = 2.0
    headers: Mapping[str, str] = field(default_factory=lambda: {"Connection": "close"})
    progress_interval_sec: float = 0.1
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoints", tuple(self.endpoints))
        object.__setattr__(self, "health_paths", tuple(self.health_paths))
        self._validate()

    def _validate(self) -> None:
        if not self.base_url:
            msg = "base_url must not be empty"
            raise ConfigError(msg)
        if not self.endpoints:
            msg = "At least one endpoint is required"
            raise ConfigError(msg)
        for path in (*self.endpoints, *self.health_paths, self.probe_target):
            if not path.startswith("/"):
                msg = f"Endpoint paths must start with '/': {path!r}"
                raise ConfigError(msg)
        if self.concurrency < 1:
            msg = f"concurrency must be >= 1, got {self.concurrency}"
            raise ConfigError(msg)
        if self.duration_sec <= 0:
            msg = f"duration_sec must be positive, got {self.duration_sec}"
            raise ConfigError(msg)
        if self.timeout_ms <= 0:
            msg = f"timeout_ms must be positive, got {self.timeout_ms}"
            raise ConfigError(msg)
        if self.health_timeout_sec <= 0:
            msg = f"health_timeout_sec must be positive, got {self.health_timeout_sec}"
            raise ConfigError(msg)
        if self.progress_interval_sec <= 0:
            msg = f"progress_interval_sec must be positive, got {self.progress_interval_sec}"
            raise ConfigError(msg)
        if self.thresholds.slow_response_ms <= 0:
            msg = f"slow_response_ms must be positive, got {self.thresholds.slow_response_ms}"
            raise ConfigError(msg)
        if self.thresholds.burst_failures < 1:
            msg = f"burst_failures must be >= 1, got {self.thresholds.burst_failures}"
            raise ConfigError(msg)

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def probe_target(self) -> str:
        if self.probe_path is not None:
            return self.probe_path
        return self.endpoints[0] if self.endpoints else "/"

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "base_url": self.base_url,
            "endpoints": list(self.endpoints),
            "concurrency": self.concurrency,
            "duration_sec": self.duration_sec,
            "timeout_ms": self.timeout_ms,
            "probe_path": self.probe_target,
            "health_paths": list(self.health_paths),
            "headers": dict(self.headers),
            "notes": self.notes,
            "thresholds": {
                "slow_response_ms": self.thresholds.slow_response_ms,
                "burst_failures": self.thresholds.burst_failures,
            },
        }
