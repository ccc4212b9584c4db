from __future__ import annotations

import asyncio
import errno

import httpx

from stressprobe.loadgen import send_request
from stressprobe.loadgen.classifier import classify_response, error_kind
from stressprobe.metrics import Outcome

BASE = "http://device.test"


class _BrokenBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        raise httpx.ReadError("connection lost mid-body")
        yield b""  # pragma: no cover


def _send(handler, endpoint: str = "/ping", timeout_sec: float = 1.0):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await send_request(client, BASE, endpoint, timeout_sec)

    return asyncio.run(go())


def test_success() -> None:
    sample = _send(lambda request: httpx.Response(200, text="pong"))
    assert sample.outcome is Outcome.SUCCESS
    assert sample.status_code == 200
    assert sample.error_kind is None
    assert sample.endpoint == "/ping"
    assert sample.latency_ms >= 0


def test_http_error_keeps_status() -> None:
    sample = _send(lambda request: httpx.Response(503))
    assert sample.outcome is Outcome.HTTP_ERROR
    assert sample.status_code == 503
    assert sample.error_kind is None


def test_body_read_failure_is_parse_error() -> None:
    sample = _send(lambda request: httpx.Response(200, stream=_BrokenBody()))
    assert sample.outcome is Outcome.PARSE_ERROR
    assert sample.status_code == 200


def test_timeout_records_elapsed_time() -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(2)
        return httpx.Response(200)

    sample = _send(slow, timeout_sec=0.05)
    assert sample.outcome is Outcome.TIMEOUT
    assert sample.status_code is None
    assert sample.error_kind == "Timeout"
    assert 40 <= sample.latency_ms < 1000


def test_connection_refused_reports_errno_name() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("All connection attempts failed", request=request) from ConnectionRefusedError(
            errno.ECONNREFUSED, "Connection refused"
        )

    sample = _send(refuse)
    assert sample.outcome is Outcome.CONNECTION_ERROR
    assert sample.status_code is None
    assert sample.error_kind == "ECONNREFUSED"


def test_error_kind_falls_back_to_truncated_message() -> None:
    message = "Server disconnected without sending a response to the request"
    assert error_kind(httpx.RemoteProtocolError(message)) == message[:40]
    assert error_kind(httpx.ConnectError("")) == "ConnectError"


def test_classify_response() -> None:
    assert classify_response(204, True) is Outcome.SUCCESS
    assert classify_response(301, True) is Outcome.HTTP_ERROR
    assert classify_response(500, False) is Outcome.HTTP_ERROR
    assert classify_response(200, False) is Outcome.PARSE_ERROR


class _StalledBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"partial"
        await asyncio.sleep(5)
        yield b"never"  # pragma: no cover


def test_body_past_deadline_is_parse_error() -> None:
    sample = _send(lambda request: httpx.Response(200, stream=_StalledBody()), timeout_sec=0.1)
    assert sample.outcome is Outcome.PARSE_ERROR
    assert sample.status_code == 200
    assert sample.error_kind is None
    assert sample.latency_ms < 1000


def test_unexpected_transport_exception_is_a_connection_error() -> None:
    def explode(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("boom")

    sample = _send(explode)
    assert sample.outcome is Outcome.CONNECTION_ERROR
    assert sample.status_code is None
    assert sample.error_kind == "boom"
