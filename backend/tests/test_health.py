"""
Tests for health check endpoints.
"""


class TestHealthEndpoints:
    """Test health check API endpoints."""

    def test_health_check(self, client):
        """Health check reports the database round trip."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "ok"

    def test_health_check_needs_no_token(self, client):
        response = client.get("/api/health", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 200

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers.get("X-Request-ID") == "abc-123"

    def test_correlation_id_is_generated(self, client):
        first = client.get("/api/health").headers.get("X-Request-ID")
        second = client.get("/api/health").headers.get("X-Request-ID")
        assert first and second
        assert first != second

    def test_cors_preflight_from_dev_frontend(self, client):
        response = client.options(
            "/api/ordenes",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_cors_rejects_unknown_origin(self, client):
        response = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in response.headers
