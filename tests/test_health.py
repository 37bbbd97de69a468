"""Tests for health check endpoints."""

from healthbridge.services.connect.stores import SdkStatus


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client):
        """Test that /health returns 200."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestLivenessEndpoint:
    """Tests for /health/live endpoint."""

    def test_liveness_returns_200(self, client):
        """Test that /health/live returns 200."""
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    def test_readiness_returns_200_when_store_available(self, client):
        """Test that /health/ready returns 200 when the health store is available."""
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["checks"]["health_store"] == "ok"

    def test_readiness_returns_503_when_store_unavailable(self, client, health_store):
        """Test that /health/ready returns 503 when the store is not available."""
        health_store.status = SdkStatus.UNAVAILABLE

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not ready"
        assert response.json()["checks"]["health_store"] == "failed"

    def test_readiness_returns_503_without_store(self, app, client):
        """Test that /health/ready returns 503 when no store is bound."""
        from healthbridge.dependencies import get_health_store

        app.dependency_overrides[get_health_store] = lambda: None

        response = client.get("/health/ready")

        assert response.status_code == 503

    def test_readiness_no_auth_required(self, client):
        """Test that /health/ready does not require authentication."""
        response = client.get("/health/ready")
        assert response.status_code == 200
