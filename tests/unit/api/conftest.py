"""Fixtures for API route tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from feedesk.api.app import create_app
from feedesk.api.dependencies import get_backend, get_settings
from feedesk.config import Settings
from feedesk.service import Backend


@pytest.fixture
def app(backend: Backend, settings: Settings) -> FastAPI:
    """Create the app wired to the in-memory test backend."""
    app = create_app(settings)

    def override_get_backend():
        yield backend

    def override_get_settings():
        yield settings

    app.dependency_overrides[get_backend] = override_get_backend
    app.dependency_overrides[get_settings] = override_get_settings
    return app


@pytest.fixture
def client(app: FastAPI):
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def sign_up(client: TestClient):
    """Sign up through the API and return the auth headers."""

    def _sign_up(email: str = "ada@example.com", name: str = "Ada Lovelace") -> dict:
        response = client.post(
            "/api/v1/auth/signup",
            json={"name": name, "email": email, "password": "secret123"},
        )
        assert response.status_code == 201, response.text
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _sign_up


@pytest.fixture
def auth_headers(sign_up) -> dict:
    """Headers for a freshly signed-up student."""
    return sign_up()
