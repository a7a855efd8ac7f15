"""
Failure Injection Tests.

Validates the error envelope and response headers when components fail.
"""

import pytest

from backend.app.db.pickup_store import StoreUnavailableError
from backend.tests.factories import PICKUP_PAYLOAD


@pytest.mark.asyncio
async def test_store_outage_returns_generic_500(client, pickup_store, user_headers, monkeypatch):
    async def unavailable(*args, **kwargs):
        raise StoreUnavailableError("connection refused")

    monkeypatch.setattr(pickup_store, "create", unavailable)

    response = await client.post("/v1/pickups", json=PICKUP_PAYLOAD, headers=user_headers)
    assert response.status_code == 500
    assert response.json() == {
        "code": "InternalServerError",
        "message": "An unexpected error occurred",
    }
    assert "connection refused" not in response.text


@pytest.mark.asyncio
async def test_unexpected_exception_returns_generic_500(client, pickup_store, user_headers, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("Boom")

    monkeypatch.setattr(pickup_store, "get", boom)

    response = await client.get("/v1/pickups/some-id", headers=user_headers)
    assert response.status_code == 500
    assert response.json() == {
        "code": "InternalServerError",
        "message": "An unexpected error occurred",
    }
    assert response.headers["Access-Control-Allow-Origin"]
    assert response.headers["X-Correlation-ID"]


@pytest.mark.asyncio
async def test_headers_on_success_and_error(client, user_headers):
    ok = await client.get("/health")
    assert ok.status_code == 200
    assert ok.headers["Access-Control-Allow-Credentials"] == "true"
    assert "Authorization" in ok.headers["Access-Control-Allow-Headers"]

    missing = await client.get("/v1/pickups/unknown", headers=user_headers)
    assert missing.status_code == 404
    assert missing.headers["Access-Control-Allow-Credentials"] == "true"

    echoed = await client.get("/health", headers={"X-Correlation-ID": "trace-123"})
    assert echoed.headers["X-Correlation-ID"] == "trace-123"


@pytest.mark.asyncio
async def test_invalid_token_and_unknown_route(client):
    response = await client.get("/v1/pickups/available", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["code"] == "Unauthorized"

    response = await client.get("/v1/nowhere")
    assert response.status_code == 404
    assert response.json()["code"] == "NotFound"


@pytest.mark.asyncio
async def test_store_health_endpoints(client, pickup_store, admin_headers, user_headers, monkeypatch):
    response = await client.get("/v1/health/redis", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["latency"] >= 0

    response = await client.get("/v1/health/postgres", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    assert (await client.get("/v1/health/redis", headers=user_headers)).status_code == 403

    async def down():
        return False

    monkeypatch.setattr(pickup_store, "ping", down)
    response = await client.get("/v1/health/redis", headers=admin_headers)
    assert response.status_code == 500
    assert response.json()["status"] == "unhealthy"
