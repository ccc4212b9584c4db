from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True, slots=True)
class Regression:
    metric: str
    delta_pct: float
    message: str


def compare_runs(base: pd.DataFrame, candidate: pd.DataFrame) -> list[Regression]:
    """Compare two stored timelines second by second."""
    regressions: list[Regression] = []
    if base.empty or candidate.empty:
        return regressions
    merged = base.merge(candidate, on="second", suffixes=("_base", "_cand"))
    merged = merged[(merged["requests_base"] > 0) & (merged["requests_cand"] > 0)]
    if merged.empty:
        return regressions

    base_mean = merged["mean_ms_base"].mean()
    cand_mean = merged["mean_ms_cand"].mean()
    if base_mean > 0:
        delta = (cand_mean - base_mean) / base_mean
        if delta > 0.2:
            regressions.append(
                Regression(
                    metric="mean_ms",
                    delta_pct=delta * 100,
                    message="mean latency increased materially",
                )
            )

    base_fail = (merged["failures_base"] / merged["requests_base"]).mean()
    cand_fail = (merged["failures_cand"] / merged["requests_cand"]).mean()
    if base_fail > 0:
        delta = (cand_fail - base_fail) / base_fail
        if delta > 0.3:
            regressions.append(
                Regression(
                    metric="failure_rate",
                    delta_pct=delta * 100,
                    message="failure rate regression detected",
                )
            )
    elif cand_fail > 0:
        regressions.append(
            Regression(
                metric="failure_rate",
                delta_pct=float("inf"),
                message="failures appeared where the baseline had none",
            )
        )

    base_rps = merged["requests_base"].mean()
    cand_rps = merged["requests_cand"].mean()
    if base_rps > 0:
        delta = (base_rps - cand_rps) / base_rps
        if delta > 0.2:
            regressions.append(
                Regression(
                    metric="throughput",
                    delta_pct=delta * 100,
                    message="throughput regression detected",
                )
            )
    return regressions
