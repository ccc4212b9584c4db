from __future__ import annotations

from stressprobe.config.models import (
    DEFAULT_ENDPOINTS,
    DEFAULT_HEALTH_PATHS,
    AnomalyThresholds,
    ConfigError,
    RunConfig,
    normalize_base_url,
)

__all__ = [
    "DEFAULT_ENDPOINTS",
    "DEFAULT_HEALTH_PATHS",
    "AnomalyThresholds",
    "ConfigError",
    "RunConfig",
    "normalize_base_url",
]
