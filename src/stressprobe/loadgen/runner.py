from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable

import httpx

from stressprobe.analysis import AnomalyDetector
from stressprobe.config import RunConfig
from stressprobe.loadgen.client import send_request
from stressprobe.loadgen.health import fetch_health, health_changes
from stressprobe.metrics import Sample, StatsAggregator, StatsSnapshot
from stressprobe.report import RunReport, build_report

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[StatsSnapshot], Awaitable[None]]


class ProbeFailedError(RuntimeError):
    """The connectivity probe failed, so no workers were started."""

    def __init__(self, base_url: str, sample: Sample) -> None:
        self.base_url = base_url
        self.sample = sample
        super().__init__(f"Cannot connect to {base_url}: {self.reason}")

    @property
    def reason(self) -> str:
        if self.sample.error_kind:
            return self.sample.error_kind
        if self.sample.status_code is not None:
            return f"HTTP {self.sample.status_code}"
        return self.sample.outcome.value


def _new_run_id() -> str:
    return uuid.uuid4().hex


async def run_stress_test(
    config: RunConfig,
    progress: ProgressCallback | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunReport:
    run_id = config.run_id or _new_run_id()
    async with httpx.AsyncClient(transport=transport) as client:
        health_before = await fetch_health(client, config)

        probe = await send_request(client, config.base_url, config.probe_target, config.timeout_sec, config.headers)
        if not probe.success:
            logger.error("probe %s%s failed: %s", config.base_url, config.probe_target, probe.outcome.value)
            raise ProbeFailedError(config.base_url, probe)
        logger.info("connected to %s (%.0fms)", config.base_url, probe.latency_ms)

        # probe data is discarded; the timed run starts from clean state
        started = time.perf_counter()
        aggregator = StatsAggregator(started, duration_sec=config.duration_sec)
        detector = AnomalyDetector(config.thresholds, started)
        await _run_workers(client, config, aggregator, detector, progress)
        elapsed = time.perf_counter() - started

        health_after = await fetch_health(client, config)

    stats = aggregator.stats
    logger.info(
        "run %s finished: %d requests in %.2fs, %d failed, %d anomalies",
        run_id,
        stats.total,
        elapsed,
        stats.failures,
        len(detector.records),
    )
    return build_report(
        run_id=run_id,
        base_url=config.base_url,
        stats=stats,
        anomalies=detector.records,
        max_consecutive_failures=detector.max_consecutive_failures,
        elapsed_sec=elapsed,
        health_before=health_before,
        health_after=health_after,
        health_changes=health_changes(health_before, health_after),
    )


async def _run_workers(
    client: httpx.AsyncClient,
    config: RunConfig,
    aggregator: StatsAggregator,
    detector: AnomalyDetector,
    progress: ProgressCallback | None,
) -> None:
    stop = asyncio.Event()
    endpoints = config.endpoints

    def record(sample: Sample) -> None:
        aggregator.fold(sample)
        detector.observe(sample)

    async def worker(worker_id: int) -> None:
        index = worker_id
        while not stop.is_set():
            endpoint = endpoints[index % len(endpoints)]
            index += 1
            sample = await send_request(client, config.base_url, endpoint, config.timeout_sec, config.headers)
            record(sample)
            await asyncio.sleep(0)

    async def reporter() -> None:
        while not stop.is_set():
            await asyncio.sleep(config.progress_interval_sec)
            await progress(aggregator.snapshot())

    logger.info(
        "starting %d workers against %d endpoints for %.1fs",
        config.concurrency,
        len(endpoints),
        config.duration_sec,
    )
    tasks = [asyncio.create_task(worker(i)) for i in range(config.concurrency)]
    progress_task = asyncio.create_task(reporter()) if progress else None
    try:
        await asyncio.sleep(config.duration_sec)
    finally:
        stop.set()
        # in-flight requests finish and are folded in
        await asyncio.gather(*tasks)
        if progress_task is not None:
            progress_task.cancel()
            await asyncio.gather(progress_task, return_exceptions=True)
    if progress:
        await progress(aggregator.snapshot())
