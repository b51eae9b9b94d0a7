"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)

HEALTHY_DB = {
    "healthy": True,
    "pool_stats": {"pool_size": 4, "pool_available": 3, "pool_utilization_percent": 25.0},
}


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when all services are healthy."""
    with (
        patch(
            "app.routes.health.redis_health_check",
            AsyncMock(return_value={"healthy": True, "ping": True}),
        ),
        patch("app.routes.health.db_health_check", AsyncMock(return_value=HEALTHY_DB)),
    ):
        response = client.get("/readyz")

        assert response.status_code == 200
        data = response.json()
        assert data["overall_ok"] is True

        checks = data["checks"]
        assert checks["redis"]["ok"] is True
        assert checks["database"]["ok"] is True
        assert checks["database"]["pool_size"] == 4
        assert checks["configuration"]["ok"] is True


def test_readyz_endpoint_redis_unhealthy():
    """Test readiness endpoint when Redis is down."""
    with (
        patch(
            "app.routes.health.redis_health_check",
            AsyncMock(return_value={"healthy": False, "error": "Redis ping failed"}),
        ),
        patch("app.routes.health.db_health_check", AsyncMock(return_value=HEALTHY_DB)),
    ):
        response = client.get("/readyz")

        # Should still return 200, but overall_ok should be False
        assert response.status_code == 200
        data = response.json()
        assert data["overall_ok"] is False
        assert data["checks"]["redis"]["ok"] is False
        assert data["checks"]["redis"]["error"] == "Redis ping failed"


def test_readyz_endpoint_database_unhealthy():
    """Test readiness endpoint when the database pool is down."""
    with (
        patch(
            "app.routes.health.redis_health_check",
            AsyncMock(return_value={"healthy": True}),
        ),
        patch(
            "app.routes.health.db_health_check",
            AsyncMock(return_value={"healthy": False, "error": "Pool not initialized"}),
        ),
    ):
        response = client.get("/readyz")

        assert response.status_code == 200
        data = response.json()
        assert data["overall_ok"] is False
        assert data["checks"]["database"]["ok"] is False
        assert data["checks"]["database"]["error"] == "Pool not initialized"


def test_readyz_endpoint_database_raises():
    """Exceptions from a check are reported, not raised."""
    with (
        patch(
            "app.routes.health.redis_health_check",
            AsyncMock(return_value={"healthy": True}),
        ),
        patch(
            "app.routes.health.db_health_check",
            AsyncMock(side_effect=RuntimeError("connection refused")),
        ),
    ):
        response = client.get("/readyz")

        data = response.json()
        assert data["overall_ok"] is False
        assert "RuntimeError" in data["checks"]["database"]["error"]


def test_readyz_includes_latency_metrics():
    """Test that readiness checks include latency metrics."""
    with (
        patch(
            "app.routes.health.redis_health_check",
            AsyncMock(return_value={"healthy": True}),
        ),
        patch("app.routes.health.db_health_check", AsyncMock(return_value=HEALTHY_DB)),
    ):
        response = client.get("/readyz")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert isinstance(checks["redis"]["latency_ms"], (int, float))
        assert isinstance(checks["database"]["latency_ms"], (int, float))
