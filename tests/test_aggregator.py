from __future__ import annotations

from hypothesis import given, strategies as st

from stressprobe.metrics import Outcome, Sample, StatsAggregator

samples = st.lists(
    st.builds(
        Sample,
        endpoint=st.sampled_from(["/a", "/b", "/c"]),
        latency_ms=st.floats(min_value=0.0, max_value=5000.0, allow_nan=False),
        outcome=st.sampled_from(list(Outcome)),
        completed_at=st.floats(min_value=0.0, max_value=20.0, allow_nan=False),
        status_code=st.one_of(st.none(), st.sampled_from([200, 404, 500])),
        error_kind=st.one_of(st.none(), st.sampled_from(["ECONNREFUSED", "Timeout"])),
    ),
    max_size=200,
)


@given(batch=samples)
def test_invariants_hold_after_every_fold(batch: list[Sample]) -> None:
    agg = StatsAggregator(started_at=0.0)
    for sample in batch:
        agg.fold(sample)
        stats = agg.stats
        assert stats.total == stats.successes + stats.failures
        assert sum(ep.requests for ep in stats.endpoints.values()) == stats.total
        assert sum(b.requests for b in stats.timeline) == stats.total
        assert len(stats.latencies) == stats.total
        assert [b.second for b in stats.timeline] == list(range(len(stats.timeline)))


def test_timeline_fills_gaps() -> None:
    agg = StatsAggregator(started_at=100.0)
    agg.fold(Sample("/a", 5.0, Outcome.SUCCESS, completed_at=103.4, status_code=200))
    timeline = agg.stats.timeline
    assert len(timeline) == 4
    assert [b.requests for b in timeline] == [0, 0, 0, 1]
    assert timeline[3].min_ms == 5.0


def test_timeline_clamps_to_run_window() -> None:
    agg = StatsAggregator(started_at=0.0, duration_sec=2)
    agg.fold(Sample("/a", 5.0, Outcome.SUCCESS, completed_at=2.3, status_code=200))
    agg.fold(Sample("/a", 5.0, Outcome.SUCCESS, completed_at=-0.1, status_code=200))
    assert [b.requests for b in agg.stats.timeline] == [1, 1]


def test_counters_and_histograms() -> None:
    agg = StatsAggregator(started_at=0.0)
    agg.fold(Sample("/a", 10.0, Outcome.SUCCESS, 0.1, status_code=200))
    agg.fold(Sample("/a", 20.0, Outcome.HTTP_ERROR, 0.2, status_code=500))
    agg.fold(Sample("/b", 30.0, Outcome.CONNECTION_ERROR, 0.3, error_kind="ECONNREFUSED"))
    stats = agg.stats
    assert stats.status_codes == {200: 1, 500: 1}
    assert stats.error_kinds == {"ECONNREFUSED": 1}
    assert stats.outcomes[Outcome.HTTP_ERROR] == 1
    ep = stats.endpoints["/a"]
    assert (ep.requests, ep.successes, ep.failures) == (2, 1, 1)
    assert (ep.min_ms, ep.max_ms) == (10.0, 20.0)
    assert stats.latencies == [10.0, 20.0, 30.0]


def test_snapshot_reads_counters() -> None:
    agg = StatsAggregator(started_at=0.0, clock=lambda: 2.0)
    agg.fold(Sample("/a", 10.0, Outcome.SUCCESS, 0.1, status_code=200))
    agg.fold(Sample("/a", 10.0, Outcome.TIMEOUT, 0.2, error_kind="Timeout"))
    snap = agg.snapshot()
    assert (snap.total, snap.successes, snap.failures) == (2, 1, 1)
    assert snap.elapsed_sec == 2.0
    assert snap.rps == 1.0
    assert snap.success_rate == 50.0
