# API Router for dashboard session lifecycle
import logging
from typing import Optional, List, Dict

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Response
from pydantic import BaseModel

from fireguide_dashboard.app.dependencies.sessions import get_dashboard_session, get_session_registry
from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.app.service.interfaces.user_notifier import BufferedUserNotifier
from fireguide_dashboard.app.service.session import DashboardSession, SessionRegistry
from fireguide_dashboard.infrastructure.fireguide_api.client import get_fireguide_api_client

logger = logging.getLogger(__name__)
router = APIRouter()


class OpenSessionRequest(BaseModel):
    api_token: str
    professional_id: int

class OpenSessionResponse(BaseModel):
    session_token: str


@router.post(
    "",
    status_code=201,
    response_model=OpenSessionResponse,
    summary="Open a dashboard session for an authenticated professional."
)
async def open_session_api(
    request_data: OpenSessionRequest = Body(...),
    registry: SessionRegistry = Depends(get_session_registry),
    api: AbstractFireGuideApi = Depends(get_fireguide_api_client),
):
    try:
        session_token = registry.open(api, request_data.api_token, request_data.professional_id)
    except NotAuthenticatedError as e:
        logger.warning(f"Refusing to open dashboard session: {e}")
        raise HTTPException(status_code=401, detail=str(e))
    return OpenSessionResponse(session_token=session_token)


@router.delete("", status_code=204, summary="Close the dashboard session and discard its caches.")
async def close_session_api(
    x_session_token: Optional[str] = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
):
    if not x_session_token or not registry.close(x_session_token):
        raise HTTPException(status_code=404, detail="Dashboard session not found.")
    return Response(status_code=204)


@router.get(
    "/messages",
    response_model=List[Dict[str, str]],
    summary="Drain pending transient messages for the dashboard to display."
)
async def drain_messages_api(session: DashboardSession = Depends(get_dashboard_session)):
    if isinstance(session.notifier, BufferedUserNotifier):
        return session.notifier.drain()
    return []
