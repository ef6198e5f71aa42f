"""
Integration tests for health probes and the middleware stack.
"""

import pytest

pytestmark = pytest.mark.anyio


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


async def test_liveness(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_readiness_needs_only_database(client):
    response = await client.get("/api/health/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["checks"]["db"]["healthy"] is True
    # No API keys are configured under test
    assert body["checks"]["email"] == {
        "healthy": False,
        "required": False,
        "latency_ms": body["checks"]["email"]["latency_ms"],
        "error": "Resend API unreachable or not configured",
    }


async def test_request_id_is_echoed(client):
    response = await client.get("/api/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


async def test_malformed_request_id_is_replaced(client):
    response = await client.get("/api/health", headers={"X-Request-ID": "bad id\twith spaces"})

    assert response.headers["X-Request-ID"] != "bad id\twith spaces"
    assert len(response.headers["X-Request-ID"]) == 36


async def test_security_headers(client):
    response = await client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Content-Security-Policy" in response.headers
