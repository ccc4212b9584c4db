from __future__ import annotations

import asyncio
import errno

import httpx

from stressprobe.metrics import Outcome

TIMEOUT_KIND = "Timeout"
_MAX_MESSAGE = 40


def classify_response(status_code: int, body_ok: bool) -> Outcome:
    if not 200 <= status_code < 300:
        return Outcome.HTTP_ERROR
    if not body_ok:
        return Outcome.PARSE_ERROR
    return Outcome.SUCCESS


def classify_exception(exc: BaseException) -> tuple[Outcome, str]:
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return Outcome.TIMEOUT, TIMEOUT_KIND
    return Outcome.CONNECTION_ERROR, error_kind(exc)


def error_kind(exc: BaseException) -> str:
    """Symbolic errno from the cause chain, else a truncated message."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno in errno.errorcode:
            return errno.errorcode[current.errno]
        current = current.__cause__ or current.__context__
    message = str(exc).strip()
    if message:
        return message[:_MAX_MESSAGE]
    return type(exc).__name__
