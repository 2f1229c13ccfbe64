"""Tests for health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_liveness_probe_always_returns_200(make_app):
    """Liveness probe (/health) always returns 200 if service is running."""
    client = TestClient(make_app())

    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "alive"


def test_liveness_probe_sets_request_headers(make_app):
    """Logging middleware tags every response with a request id and timing."""
    client = TestClient(make_app())

    resp = client.get("/health")
    assert resp.headers["X-Request-ID"]
    assert resp.headers["X-Process-Time"].endswith("ms")


def test_unknown_route_returns_404_envelope(make_app):
    client = TestClient(make_app())

    resp = client.get("/nope")
    assert resp.status_code == 404
    data = resp.json()
    assert data["error"]["status"] == 404
    assert data["error"]["path"] == "/nope"
