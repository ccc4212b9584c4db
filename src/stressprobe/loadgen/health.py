from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from stressprobe.config import RunConfig

logger = logging.getLogger(__name__)

HealthSnapshot = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class HealthChange:
    source: str
    field: str
    before: float
    after: float

    @property
    def delta(self) -> float:
        return self.after - self.before


async def fetch_health(client: httpx.AsyncClient, config: RunConfig) -> dict[str, Any] | None:
    """Best-effort read of the server's status endpoints.

    Each path maps to its decoded JSON body, or ``None`` if it failed.
    Returns ``None`` when nothing could be read.
    """
    if not config.health_paths:
        return None
    results = await asyncio.gather(
        *(_fetch_json(client, config, path) for path in config.health_paths),
        return_exceptions=True,
    )
    snapshot: dict[str, Any] = {}
    for path, result in zip(config.health_paths, results):
        if isinstance(result, BaseException):
            logger.debug("health probe %s failed: %r", path, result)
            snapshot[path] = None
        else:
            snapshot[path] = result
    if all(value is None for value in snapshot.values()):
        return None
    return snapshot


async def _fetch_json(client: httpx.AsyncClient, config: RunConfig, path: str) -> Any:
    resp = await asyncio.wait_for(
        client.get(f"{config.base_url}{path}", timeout=config.health_timeout_sec),
        timeout=config.health_timeout_sec,
    )
    resp.raise_for_status()
    return resp.json()


def health_changes(before: HealthSnapshot | None, after: HealthSnapshot | None) -> list[HealthChange]:
    if not before or not after:
        return []
    changes: list[HealthChange] = []
    for source, after_body in after.items():
        before_body = before.get(source)
        if before_body is None or after_body is None:
            continue
        before_fields = _numeric_fields(before_body)
        for name, after_value in _numeric_fields(after_body).items():
            before_value = before_fields.get(name)
            if before_value is not None and before_value != after_value:
                changes.append(HealthChange(source, name, before_value, after_value))
    return changes


def _numeric_fields(body: Any, prefix: str = "") -> dict[str, float]:
    fields: dict[str, float] = {}
    if isinstance(body, Mapping):
        for key, value in body.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            fields.update(_numeric_fields(value, name))
    elif isinstance(body, (int, float)) and not isinstance(body, bool) and prefix:
        fields[prefix] = float(body)
    return fields
