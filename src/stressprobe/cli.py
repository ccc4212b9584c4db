from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from stressprobe.analysis import compare_runs
from stressprobe.config import (
    DEFAULT_ENDPOINTS,
    DEFAULT_HEALTH_PATHS,
    AnomalyThresholds,
    ConfigError,
    RunConfig,
    normalize_base_url,
)
from stressprobe.loadgen import ProbeFailedError, run_stress_test
from stressprobe.metrics import StatsSnapshot
from stressprobe.report import RunReport
from stressprobe.storage import Storage, default_storage


def _build_config(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        base_url=normalize_base_url(args.target),
        endpoints=tuple(args.endpoint or DEFAULT_ENDPOINTS),
        concurrency=args.concurrency,
        duration_sec=args.duration,
        timeout_ms=args.timeout_ms,
        thresholds=AnomalyThresholds(
            slow_response_ms=args.slow_ms,
            burst_failures=args.burst_failures,
        ),
        probe_path=args.probe_path,
        health_paths=() if args.no_health else tuple(args.health_path or DEFAULT_HEALTH_PATHS),
        notes=args.notes,
    )


async def _print_progress(snapshot: StatsSnapshot) -> None:
    sys.stderr.write(
        f"\r{snapshot.total} req | {snapshot.success_rate:.1f}% OK | "
        f"{snapshot.rps:.0f} rps | {snapshot.elapsed_sec:.0f}s   "
    )
    sys.stderr.flush()


def _fmt_ms(value: float | None) -> str:
    if value is None:
        return "N/A"
    if value < 1:
        return f"{value * 1000:.0f}us"
    if value < 1000:
        return f"{value:.1f}ms"
    return f"{value / 1000:.2f}s"


def _print_summary(report: RunReport) -> None:
    lat = report.latency
    print(f"Run {report.run_id} against {report.base_url}")
    print(f"  requests:    {report.total} ({report.successes} ok, {report.failures} failed)")
    print(f"  throughput:  {report.throughput_rps:.1f} req/s over {report.elapsed_sec:.2f}s")
    print(f"  success:     {report.success_rate:.2f}%")
    for outcome, count in report.outcomes.items():
        if count and outcome != "success":
            print(f"    {outcome}: {count}")
    print(
        f"  latency:     min {_fmt_ms(lat.min_ms)} mean {_fmt_ms(lat.mean_ms)} "
        f"max {_fmt_ms(lat.max_ms)} stddev {_fmt_ms(lat.std_dev_ms)}"
    )
    print(
        f"  percentiles: p50 {_fmt_ms(lat.p50_ms)} p75 {_fmt_ms(lat.p75_ms)} p90 {_fmt_ms(lat.p90_ms)} "
        f"p95 {_fmt_ms(lat.p95_ms)} p99 {_fmt_ms(lat.p99_ms)}"
    )
    if report.status_codes:
        codes = ", ".join(f"{code}={count}" for code, count in sorted(report.status_codes.items()))
        print(f"  status:      {codes}")
    if report.error_kinds:
        errors = ", ".join(f"{kind}={count}" for kind, count in report.error_kinds.items())
        print(f"  errors:      {errors}")
    for ep in report.endpoints:
        print(
            f"  {ep.endpoint:<28} {ep.requests:>8} req {ep.success_rate:>5.0f}% "
            f"avg {_fmt_ms(ep.mean_ms)} p95 {_fmt_ms(ep.p95_ms)} max {_fmt_ms(ep.max_ms)}"
        )
    print(f"  max consecutive failures: {report.max_consecutive_failures}")
    print(f"  anomalies:   {report.slow_responses} slow, {report.failure_bursts} bursts")
    for change in report.health_changes:
        print(f"  health {change.source} {change.field}: {change.before:g} -> {change.after:g} ({change.delta:+g})")
    print(f"  rating:      {report.rating.stars}/5 {report.rating.label} ({', '.join(report.rating.notes)})")


def _cmd_run(args: argparse.Namespace) -> int:
    try:
        config = _build_config(args)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    progress = None if args.quiet else _print_progress
    try:
        report = asyncio.run(run_stress_test(config, progress=progress))
    except ProbeFailedError as exc:
        print(f"Cannot connect to {exc.base_url}", file=sys.stderr)
        print(f"  Error: {exc.reason}", file=sys.stderr)
        return 1
    if not args.quiet:
        sys.stderr.write("\n")
    if args.save:
        _storage(args).save_report(config, report)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_summary(report)
    return 0


def _cmd_runs(args: argparse.Namespace) -> int:
    runs = _storage(args).list_runs()
    if runs.empty:
        print("No stored runs")
        return 0
    print(runs.to_string(index=False))
    return 0


def _cmd_compare(args: argparse.Namespace) -> int:
    storage = _storage(args)
    base = storage.load_timeline(args.base)
    candidate = storage.load_timeline(args.candidate)
    if base.empty or candidate.empty:
        print("Both runs must exist and have timeline data", file=sys.stderr)
        return 1
    regressions = compare_runs(base, candidate)
    if not regressions:
        print("No regressions detected")
        return 0
    for reg in regressions:
        print(f"{reg.message} ({reg.delta_pct:.1f}% on {reg.metric})")
    return 1


def _storage(args: argparse.Namespace) -> Storage:
    return Storage(Path(args.db)) if args.db else default_storage()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HTTP stress tester")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--db", help="Path to the run database")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a timed stress test")
    run.add_argument("target", help="Target host or base URL")
    run.add_argument("--duration", type=float, default=10.0)
    run.add_argument("--concurrency", type=int, default=5)
    run.add_argument("--timeout-ms", type=float, default=3000.0)
    run.add_argument("--endpoint", action="append", help="Endpoint path (repeatable)")
    run.add_argument("--probe-path", default=None)
    run.add_argument("--health-path", action="append", help="Status endpoint path (repeatable)")
    run.add_argument("--no-health", action="store_true")
    run.add_argument("--slow-ms", type=float, default=500.0)
    run.add_argument("--burst-failures", type=int, default=3)
    run.add_argument("--notes", default="")
    run.add_argument("--json", action="store_true")
    run.add_argument("--save", action="store_true")
    run.add_argument("--quiet", action="store_true")
    run.set_defaults(func=_cmd_run)

    runs = sub.add_parser("runs", help="List stored runs")
    runs.set_defaults(func=_cmd_runs)

    compare = sub.add_parser("compare", help="Compare two stored runs")
    compare.add_argument("base")
    compare.add_argument("candidate")
    compare.set_defaults(func=_cmd_compare)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
