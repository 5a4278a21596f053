import pytest
from fastapi.testclient import TestClient

from fireguide_dashboard.app.main import app
from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.dependencies.sessions import get_session_registry
from fireguide_dashboard.app.service.session import SessionRegistry

# --- Fixtures ---

@pytest.fixture
def client():
    app.dependency_overrides = {}
    yield TestClient(app)
    app.dependency_overrides = {}

# --- Tests for GET /health ---

def test_health_check_reports_active_sessions(client: TestClient, mock_api):
    registry = SessionRegistry()
    registry.open(mock_api, "api-token", 42)
    app.dependency_overrides[get_session_registry] = lambda: registry

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "components": {
            "fireguide_api": settings.FIREGUIDE_API_BASE_URL,
            "active_sessions": 1,
        },
        "service_name": settings.SERVICE_NAME_API,
    }

def test_health_check_with_no_sessions(client: TestClient):
    app.dependency_overrides[get_session_registry] = lambda: SessionRegistry()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["components"]["active_sessions"] == 0
