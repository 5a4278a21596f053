import pytest
from unittest.mock import patch, AsyncMock, MagicMock
from fastapi import FastAPI
import httpx

from fireguide_dashboard.app.main import startup_event, shutdown_event, app as main_app_instance
from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.service.session import SessionRegistry


@pytest.fixture
def mock_app():
    """Provides a FastAPI app with a mock state."""
    app = FastAPI()
    app.state = MagicMock()
    return app

@pytest.mark.asyncio
@patch('fireguide_dashboard.app.main.httpx.AsyncClient')
@patch('fireguide_dashboard.app.main.HTTPXClientInstrumentor')
@patch('fireguide_dashboard.app.main.logger')
async def test_startup_event_creates_instrumented_http_client(
    mock_logger,
    mock_httpx_instrumentor,
    mock_async_client_constructor,
    mock_app
):
    # Arrange
    mock_async_client_instance = AsyncMock(spec=httpx.AsyncClient)
    mock_async_client_constructor.return_value = mock_async_client_instance

    # Act
    with patch('fireguide_dashboard.app.main.app', mock_app):
        await startup_event()

    # Assert
    mock_async_client_constructor.assert_called_once_with(timeout=settings.DEFAULT_HTTP_TIMEOUT)
    assert mock_app.state.http_client == mock_async_client_instance
    mock_httpx_instrumentor.return_value.instrument.assert_called_once()

@pytest.mark.asyncio
@patch('fireguide_dashboard.app.main.logger')
async def test_shutdown_event_closes_sessions_then_client(mock_logger, mock_app):
    # Arrange
    mock_registry = MagicMock(spec=SessionRegistry)
    mock_http_client = AsyncMock(spec=httpx.AsyncClient)
    mock_app.state.session_registry = mock_registry
    mock_app.state.http_client = mock_http_client

    # Act
    with patch('fireguide_dashboard.app.main.app', mock_app):
        await shutdown_event()

    # Assert
    mock_registry.close_all.assert_called_once()
    mock_http_client.aclose.assert_awaited_once()

@pytest.mark.asyncio
@patch('fireguide_dashboard.app.main.logger')
async def test_shutdown_event_without_http_client(mock_logger):
    app = FastAPI()
    app.state.session_registry = SessionRegistry()

    with patch('fireguide_dashboard.app.main.app', app):
        await shutdown_event() # Must not raise

    assert len(app.state.session_registry) == 0

def test_routers_are_mounted():
    paths = {route.path for route in main_app_instance.routes}

    assert "/health" in paths
    assert "/api/v1/sessions" in paths
    assert "/api/v1/verification/{kind}/evidence" in paths
    assert "/api/v1/notifications/{notification_id}/read" in paths
