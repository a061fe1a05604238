from __future__ import annotations

import time
from dataclasses import dataclass

import httpx

from ..core.config import settings

HEALTH_TIMEOUT_SECONDS = 5.0
ENDPOINT_TIMEOUT_SECONDS = 10.0


@dataclass
class HealthCheckResult:
    is_healthy: bool
    status: int
    status_text: str
    error: str | None = None
    response_time_ms: float | None = None


def _not_configured() -> HealthCheckResult:
    return HealthCheckResult(
        is_healthy=False,
        status=0,
        status_text="Not Configured",
        error="API base URL is not configured",
    )


async def _probe(
    url: str,
    timeout: float,
    healthy,
    transport: httpx.AsyncBaseTransport | None,
) -> HealthCheckResult:
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        return HealthCheckResult(
            is_healthy=False,
            status=0,
            status_text="Network Error",
            error=str(exc),
            response_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
    return HealthCheckResult(
        is_healthy=healthy(response.status_code),
        status=response.status_code,
        status_text=response.reason_phrase,
        response_time_ms=round((time.perf_counter() - start) * 1000, 2),
    )


async def check_api_health(
    base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None
) -> HealthCheckResult:
    """Probe ``/health/`` on the remote API; only a 200 counts as healthy."""

    base = (settings.api_base_url if base_url is None else base_url).rstrip("/")
    if not base:
        return _not_configured()
    return await _probe(f"{base}/health/", HEALTH_TIMEOUT_SECONDS, lambda code: code == 200, transport)


async def check_api_endpoint(
    endpoint: str,
    base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HealthCheckResult:
    base = (settings.api_base_url if base_url is None else base_url).rstrip("/")
    if not base:
        return _not_configured()
    url = endpoint if endpoint.startswith("http") else f"{base}{endpoint}"
    return await _probe(url, ENDPOINT_TIMEOUT_SECONDS, lambda code: code < 400, transport)
