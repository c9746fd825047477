"""Unit tests for setup and health routes."""

import pytest
from fastapi.testclient import TestClient

from feedesk import __version__


@pytest.mark.unit
class TestSetupStatus:
    """Tests for GET /setup/status."""

    def test_setup_status(self, client: TestClient) -> None:
        response = client.get("/api/v1/setup/status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is True
        assert data["message"] == "Database tables are accessible"


@pytest.mark.unit
class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}
