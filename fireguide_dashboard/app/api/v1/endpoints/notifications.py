# API Router for the professional's notification inbox
import logging
from typing import List, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fireguide_dashboard.app.dependencies.sessions import get_dashboard_session
from fireguide_dashboard.app.models.notification import Notification, NotificationCategory, ViewSelector
from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError, RemoteCallError
from fireguide_dashboard.app.service.session import DashboardSession

logger = logging.getLogger(__name__)
router = APIRouter()


class NotificationsView(BaseModel):
    selector: ViewSelector
    notifications: List[Notification]
    unread_count: int
    category_counts: Dict[NotificationCategory, int]


def _view(session: DashboardSession) -> NotificationsView:
    synchronizer = session.notifications
    return NotificationsView(
        selector=synchronizer.selector,
        notifications=synchronizer.visible_notifications(),
        unread_count=synchronizer.unread_count(),
        category_counts=synchronizer.category_counts(),
    )


@router.get("", response_model=NotificationsView, summary="Load a notifications view (all, unread or a category).")
async def load_notifications_api(
    selector: ViewSelector = ViewSelector.ALL,
    session: DashboardSession = Depends(get_dashboard_session),
):
    try:
        await session.notifications.load_view(selector)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return _view(session)


@router.post("/read-all", response_model=NotificationsView, summary="Mark every known notification as read.")
async def mark_all_read_api(session: DashboardSession = Depends(get_dashboard_session)):
    try:
        await session.notifications.mark_all_read()
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return _view(session)


@router.post("/{notification_id}/read", response_model=NotificationsView, summary="Mark one notification as read.")
async def mark_read_api(notification_id: int, session: DashboardSession = Depends(get_dashboard_session)):
    try:
        await session.notifications.mark_read(notification_id)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return _view(session)


@router.delete("", response_model=NotificationsView, summary="Delete every known notification.")
async def delete_all_api(session: DashboardSession = Depends(get_dashboard_session)):
    try:
        await session.notifications.delete_all()
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return _view(session)


@router.delete("/{notification_id}", response_model=NotificationsView, summary="Delete one notification.")
async def delete_one_api(notification_id: int, session: DashboardSession = Depends(get_dashboard_session)):
    try:
        await session.notifications.delete_one(notification_id)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return _view(session)
