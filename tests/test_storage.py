from __future__ import annotations

from pathlib import Path

import pytest

from stressprobe.analysis import compare_runs
from stressprobe.config import RunConfig
from stressprobe.storage import Storage

from test_report import make_report


def _config(run_id: str) -> RunConfig:
    return RunConfig(base_url="http://device.test", run_id=run_id, notes=f"notes {run_id}")


def test_save_and_load_report(tmp_path: Path) -> None:
    storage = Storage(tmp_path / "runs.duckdb")
    report = make_report("run-a")
    storage.save_report(_config("run-a"), report)

    assert storage.run_exists("run-a")
    assert not storage.run_exists("run-b")
    loaded = storage.load_report("run-a")
    assert loaded is not None
    assert loaded["total"] == 5
    assert storage.load_report("missing") is None

    timeline = storage.load_timeline("run-a")
    assert timeline["second"].tolist() == [0, 1]
    assert timeline["requests"].sum() == 5
    endpoints = storage.load_endpoint_stats("run-a")
    assert endpoints["endpoint"].tolist() == ["/ping", "/api/status"]
    anomalies = storage.load_anomalies("run-a")
    assert anomalies["kind"].tolist() == ["slow_response"]
    assert storage.list_runs()["run_id"].tolist() == ["run-a"]


def test_duplicate_run_rejected(tmp_path: Path) -> None:
    storage = Storage(tmp_path / "runs.duckdb")
    storage.save_report(_config("run-a"), make_report("run-a"))
    with pytest.raises(ValueError):
        storage.save_report(_config("run-a"), make_report("run-a"))


def test_compare_flags_latency_regression(tmp_path: Path) -> None:
    storage = Storage(tmp_path / "runs.duckdb")
    storage.save_report(_config("base"), make_report("base"))
    storage.save_report(_config("slow"), make_report("slow", latency_scale=3.0))

    base = storage.load_timeline("base")
    assert compare_runs(base, base) == []
    regressions = compare_runs(base, storage.load_timeline("slow"))
    assert [r.metric for r in regressions] == ["mean_ms"]
    assert regressions[0].delta_pct > 20
