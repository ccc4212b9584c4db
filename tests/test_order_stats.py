from __future__ import annotations

import math

from hypothesis import given, strategies as st

from stressprobe.metrics import histogram, percentile, std_dev, summarize_latencies

latencies = st.lists(st.floats(min_value=0.0, max_value=60_000.0, allow_nan=False), min_size=1, max_size=300)


def test_percentile_nearest_rank() -> None:
    values = [10.0, 20.0, 30.0, 40.0]
    assert percentile(values, 50) == 20.0
    assert percentile(values, 75) == 30.0
    assert percentile(values, 95) == 40.0
    assert percentile(values, 0) == 10.0


def test_percentile_empty_is_not_available() -> None:
    assert percentile([], 50) is None
    assert percentile([], 100) is None


@given(value=st.floats(min_value=0.0, max_value=1e6, allow_nan=False), p=st.floats(min_value=0.0, max_value=100.0))
def test_percentile_single_value(value: float, p: float) -> None:
    assert percentile([value], p) == value


@given(values=latencies)
def test_percentile_100_is_max(values: list[float]) -> None:
    assert percentile(sorted(values), 100) == max(values)


def test_std_dev_population() -> None:
    assert std_dev([]) == 0.0
    assert std_dev([5.0]) == 0.0
    assert math.isclose(std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]), 2.0)


@given(values=latencies)
def test_histogram_counts_sum_to_input(values: list[float]) -> None:
    buckets = histogram(values)
    assert len(buckets) == 10
    assert sum(b.count for b in buckets) == len(values)


def test_histogram_edges() -> None:
    buckets = histogram([1.0, 5.5, 10.0, 10.0])
    assert buckets[0].count == 1
    assert buckets[-1].count == 2
    assert buckets[0].lower_ms == 1.0
    assert math.isclose(buckets[-1].upper_ms, 10.0)


def test_histogram_identical_values_use_unit_width() -> None:
    buckets = histogram([7.0, 7.0, 7.0])
    assert buckets[0].count == 3
    assert buckets[0].upper_ms - buckets[0].lower_ms == 1.0


def test_histogram_empty() -> None:
    assert histogram([]) == []


def test_summary_on_empty_input() -> None:
    summary = summarize_latencies([])
    assert summary.count == 0
    assert summary.p50_ms is None
    assert summary.std_dev_ms == 0.0


def test_summary_fields() -> None:
    summary = summarize_latencies([30.0, 10.0, 20.0, 40.0])
    assert summary.min_ms == 10.0
    assert summary.max_ms == 40.0
    assert summary.mean_ms == 25.0
    assert summary.p50_ms == 20.0
    assert summary.p99_ms == 40.0
