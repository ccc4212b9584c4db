from __future__ import annotations

import asyncio
import time
from typing import Mapping

import httpx

from stressprobe.loadgen.classifier import classify_exception, classify_response
from stressprobe.metrics import Sample


async def send_request(
    client: httpx.AsyncClient,
    base_url: str,
    endpoint: str,
    timeout_sec: float,
    headers: Mapping[str, str] | None = None,
) -> Sample:
    """Issue one GET and return exactly one Sample. Never raises for request failures.

    ``timeout_sec`` is a hard deadline covering the response head and body.
    """
    start = time.perf_counter()
    deadline = start + timeout_sec
    request = client.build_request("GET", f"{base_url}{endpoint}", headers=headers, timeout=timeout_sec)
    try:
        response = await asyncio.wait_for(client.send(request, stream=True), timeout=timeout_sec)
    except Exception as exc:
        finished = time.perf_counter()
        outcome, kind = classify_exception(exc)
        return Sample(
            endpoint=endpoint,
            latency_ms=(finished - start) * 1000.0,
            outcome=outcome,
            completed_at=finished,
            status_code=None,
            error_kind=kind,
        )

    try:
        await asyncio.wait_for(response.aread(), timeout=max(0.0, deadline - time.perf_counter()))
        body_ok = True
    except Exception:
        body_ok = False
    finally:
        await response.aclose()
    finished = time.perf_counter()
    return Sample(
        endpoint=endpoint,
        latency_ms=(finished - start) * 1000.0,
        outcome=classify_response(response.status_code, body_ok),
        completed_at=finished,
        status_code=response.status_code,
        error_kind=None,
    )
