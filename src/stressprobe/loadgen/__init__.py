from __future__ import annotations

from stressprobe.loadgen.client import send_request
from stressprobe.loadgen.health import HealthChange, fetch_health, health_changes
from stressprobe.loadgen.runner import ProbeFailedError, ProgressCallback, run_stress_test

__all__ = [
    "HealthChange",
    "ProbeFailedError",
    "ProgressCallback",
    "fetch_health",
    "health_changes",
    "run_stress_test",
    "send_request",
]
