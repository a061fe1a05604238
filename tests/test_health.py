"""Tests for the remote API health probes."""

import asyncio
import os
import sys
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.services.health import check_api_endpoint, check_api_health

BASE = "http://api.test/api"


def test_health_ok_on_200():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"status": "ok"})

    result = asyncio.run(check_api_health(BASE, transport=httpx.MockTransport(handler)))

    assert seen["url"] == "http://api.test/api/health/"
    assert result.is_healthy
    assert result.status == 200
    assert result.status_text == "OK"
    assert result.response_time_ms is not None


def test_health_unhealthy_on_error_status():
    result = asyncio.run(check_api_health(BASE, transport=httpx.MockTransport(lambda request: httpx.Response(503))))

    assert not result.is_healthy
    assert result.status == 503


def test_health_without_base_url():
    result = asyncio.run(check_api_health(""))

    assert not result.is_healthy
    assert result.status == 0
    assert result.status_text == "Not Configured"


def test_health_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(check_api_health(BASE, transport=httpx.MockTransport(handler)))

    assert not result.is_healthy
    assert result.status_text == "Network Error"
    assert "connection refused" in result.error


def test_endpoint_probe_accepts_any_non_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(204))
    assert asyncio.run(check_api_endpoint("/properties/", BASE, transport=transport)).is_healthy

    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    assert not asyncio.run(check_api_endpoint("/properties/", BASE, transport=transport)).is_healthy
