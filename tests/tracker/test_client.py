"""Tests for LocationClient: all HTTP goes through httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from tracker.client import LocationClient
from tracker.errors import MissingCredentialsError, NetworkFailure
from tracker.positioning import PositionFix

FIX = PositionFix(
    latitude=51.5074,
    longitude=-0.1278,
    accuracy=12.5,
    captured_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
)

PERSISTED = {
    "id": "7d0c6a1e-8d7b-4a34-9a55-3f4c0a5f8c11",
    "user_id": "u1",
    "latitude": 51.5074,
    "longitude": -0.1278,
}


def _client(handler, token="session-token") -> LocationClient:
    return LocationClient(
        "http://api.test/",
        lambda: token,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_submit_posts_report_with_bearer_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"message": "Location updated", "location": PERSISTED})

    result = await _client(handler).submit("u1", FIX, "Pixel 8")

    assert result == PERSISTED
    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == "http://api.test/api/location/update"
    assert request.headers["Authorization"] == "Bearer session-token"
    body = json.loads(request.content)
    assert body == {
        "user_id": "u1",
        "latitude": 51.5074,
        "longitude": -0.1278,
        "accuracy": 12.5,
        "sampled_at": "2026-03-01T12:00:00+00:00",
        "device_info": "Pixel 8",
    }


@pytest.mark.asyncio
async def test_submit_omits_empty_device_info():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"location": PERSISTED})

    await _client(handler).submit("u1", FIX, None)

    assert "device_info" not in bodies[0]


@pytest.mark.asyncio
async def test_non_2xx_raises_network_failure_with_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": "Location tracking is disabled"})

    with pytest.raises(NetworkFailure) as exc_info:
        await _client(handler).submit("u1", FIX)

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_transport_error_raises_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkFailure) as exc_info:
        await _client(handler).submit("u1", FIX)

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_missing_token_skips_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(MissingCredentialsError):
        await _client(handler, token=None).submit("u1", FIX)

    assert calls == []


@pytest.mark.asyncio
async def test_async_token_provider():
    async def provider():
        return "async-token"

    headers: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers["Authorization"])
        return httpx.Response(200, json={"location": PERSISTED})

    client = LocationClient(
        "http://api.test", provider, transport=httpx.MockTransport(handler)
    )
    await client.submit("u1", FIX)

    assert headers == ["Bearer async-token"]


@pytest.mark.asyncio
async def test_non_json_success_body_raises_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(NetworkFailure) as exc_info:
        await _client(handler).submit("u1", FIX)

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_non_object_json_body_raises_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["unexpected"])

    with pytest.raises(NetworkFailure):
        await _client(handler).submit("u1", FIX)
