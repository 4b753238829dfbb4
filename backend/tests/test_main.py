"""Tests for app wiring: health, correlation IDs and error bodies."""


class TestApp:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "Welcome to BantayDalan API"}

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Correlation-ID": "cafe0001"})

        assert response.headers["X-Correlation-ID"] == "cafe0001"
        assert response.headers["X-Response-Time"].endswith("s")

    def test_correlation_id_is_generated(self, client):
        response = client.get("/api/health")

        assert len(response.headers["X-Correlation-ID"]) == 8

    def test_error_body_carries_correlation_id(self, client, viewer_headers):
        response = client.get(
            "/api/reports/999",
            headers={**viewer_headers, "X-Correlation-ID": "beef0002"},
        )

        assert response.status_code == 404
        assert response.json() == {
            "detail": "Report 999 not found",
            "correlation_id": "beef0002",
        }
