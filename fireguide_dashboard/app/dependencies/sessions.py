from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError
from fireguide_dashboard.app.service.session import DashboardSession, SessionRegistry


async def get_session_registry(request: Request) -> SessionRegistry:
    """
    FastAPI dependency provider for the dashboard session registry.
    Created at startup and kept on `request.app.state.session_registry`.
    """
    return request.app.state.session_registry


async def get_dashboard_session(
    x_session_token: Optional[str] = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> DashboardSession:
    try:
        return registry.get(x_session_token)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
