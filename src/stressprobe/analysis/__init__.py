from __future__ import annotations

from stressprobe.analysis.anomalies import AnomalyDetector, AnomalyKind, AnomalyRecord
from stressprobe.analysis.compare import Regression, compare_runs
from stressprobe.analysis.rating import Rating, rate_performance

__all__ = [
    "AnomalyDetector",
    "AnomalyKind",
    "AnomalyRecord",
    "Rating",
    "Regression",
    "compare_runs",
    "rate_performance",
]
