from __future__ import annotations

from dataclasses import dataclass

_LABELS = {5: "Excellent", 4: "Good", 3: "Fair", 2: "Poor", 1: "Critical"}


@dataclass(frozen=True, slots=True)
class Rating:
    stars: int
    label: str
    notes: tuple[str, ...]


def rate_performance(
    success_rate: float,
    throughput_rps: float,
    p95_ms: float | None,
    max_consecutive_failures: int,
) -> Rating:
    score = 0
    notes: list[str] = []

    if success_rate >= 99.5:
        score += 2
        notes.append("Excellent reliability")
    elif success_rate >= 98:
        score += 1
        notes.append("Good reliability")
    elif success_rate < 90:
        score -= 1
        notes.append("Poor reliability")

    if throughput_rps >= 50:
        score += 2
        notes.append("High throughput")
    elif throughput_rps >= 30:
        score += 1
        notes.append("Good throughput")
    elif throughput_rps < 15:
        score -= 1
        notes.append("Low throughput")

    if p95_ms is not None:
        if p95_ms <= 100:
            score += 1
            notes.append("Fast p95")
        elif p95_ms > 300:
            score -= 1
            notes.append("Slow p95")

    if max_consecutive_failures <= 1:
        score += 1
        notes.append("Stable")
    elif max_consecutive_failures >= 5:
        score -= 1
        notes.append("Unstable bursts")

    stars = max(1, min(5, 3 + score))
    return Rating(stars=stars, label=_LABELS[stars], notes=tuple(notes))
