from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import duckdb
import pandas as pd

from stressprobe.config import RunConfig
from stressprobe.report import RunReport


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    base_url TEXT,
                    config_json TEXT,
                    report_json TEXT,
                    notes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS timeline (
                    run_id TEXT,
                    second INTEGER,
                    requests INTEGER,
                    successes INTEGER,
                    failures INTEGER,
                    mean_ms DOUBLE,
                    min_ms DOUBLE,
                    max_ms DOUBLE
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS endpoint_stats (
                    run_id TEXT,
                    endpoint TEXT,
                    requests INTEGER,
                    successes INTEGER,
                    failures INTEGER,
                    success_rate DOUBLE,
                    mean_ms DOUBLE,
                    p95_ms DOUBLE,
                    max_ms DOUBLE
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS anomalies (
                    run_id TEXT,
                    at_sec DOUBLE,
                    kind TEXT,
                    endpoint TEXT,
                    value DOUBLE,
                    threshold DOUBLE
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_report(self, config: RunConfig, report: RunReport) -> None:
        if self.run_exists(report.run_id):
            msg = f"Run {report.run_id} already exists"
            raise ValueError(msg)
        config_json = json.dumps({**config.to_metadata(), "run_id": report.run_id})
        report_json = json.dumps(report.to_dict())
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?, ?)",
                [report.run_id, config.created_at, config.base_url, config_json, report_json, config.notes],
            )
            timeline_df = pd.DataFrame(
                [{"run_id": report.run_id, **bucket.to_dict()} for bucket in report.timeline],
                columns=["run_id", "second", "requests", "successes", "failures", "mean_ms", "min_ms", "max_ms"],
            )
            if not timeline_df.empty:
                con.execute("INSERT INTO timeline SELECT * FROM timeline_df")
            endpoint_df = pd.DataFrame(
                [
                    {
                        "run_id": report.run_id,
                        "endpoint": e.endpoint,
                        "requests": e.requests,
                        "successes": e.successes,
                        "failures": e.failures,
                        "success_rate": e.success_rate,
                        "mean_ms": e.mean_ms,
                        "p95_ms": e.p95_ms,
                        "max_ms": e.max_ms,
                    }
                    for e in report.endpoints
                ]
            )
            if not endpoint_df.empty:
                con.execute("INSERT INTO endpoint_stats SELECT * FROM endpoint_df")
            anomaly_df = pd.DataFrame(
                [
                    {
                        "run_id": report.run_id,
                        "at_sec": a.at_sec,
                        "kind": a.kind.value,
                        "endpoint": a.endpoint,
                        "value": a.value,
                        "threshold": a.threshold,
                    }
                    for a in report.anomalies
                ]
            )
            if not anomaly_df.empty:
                con.execute("INSERT INTO anomalies SELECT * FROM anomaly_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT run_id, created_at, base_url, notes FROM run_meta ORDER BY created_at DESC"
            ).fetchdf()

    def load_report(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT report_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_timeline(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM timeline WHERE run_id = ? ORDER BY second",
                [run_id],
            ).fetchdf()

    def load_endpoint_stats(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM endpoint_stats WHERE run_id = ? ORDER BY requests DESC",
                [run_id],
            ).fetchdf()

    def load_anomalies(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM anomalies WHERE run_id = ? ORDER BY at_sec",
                [run_id],
            ).fetchdf()
