# API Router for Health Checks
from fastapi import APIRouter, Depends
import logging

from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.dependencies.sessions import get_session_registry
from fireguide_dashboard.app.service.session import SessionRegistry

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/health", tags=["Monitoring"])
async def health_check(registry: SessionRegistry = Depends(get_session_registry)):
    return {
        "status": "ok",
        "components": {
            "fireguide_api": settings.FIREGUIDE_API_BASE_URL,
            "active_sessions": len(registry),
        },
        "service_name": settings.SERVICE_NAME_API,
    }
