"""Tests for health endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test /health endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


def test_ready_endpoint(client: TestClient):
    """Test /ready endpoint returns ready status when the database is healthy."""
    with patch("fedstore.api.health.get_db_health", new_callable=AsyncMock, return_value=True):
        response = client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "healthy"


def test_ready_endpoint_unhealthy(client: TestClient):
    """Test /ready endpoint returns 503 when the database is unhealthy."""
    with patch("fedstore.api.health.get_db_health", new_callable=AsyncMock, return_value=False):
        response = client.get("/ready")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["checks"]["database"] == "unhealthy"


def test_request_id_header(client: TestClient):
    """Test responses echo the caller's request ID."""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
