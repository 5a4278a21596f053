# Shared fixtures for the dashboard sync tests
import datetime
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from fireguide_dashboard.app.models.notification import Notification, NotificationCategory, NotificationPriority
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.app.service.interfaces.session_store import StaticSessionStore
from fireguide_dashboard.app.service.interfaces.user_notifier import BufferedUserNotifier
from fireguide_dashboard.infrastructure.fireguide_api.responses import RemoteResponse

NOTIFICATION_EPOCH = datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def mock_api():
    api = AsyncMock(spec=AbstractFireGuideApi)
    ok = RemoteResponse(status=True, message="ok")
    for name in (
        "update_identity_document",
        "update_dbs_document",
        "store_qualification_evidence",
        "mark_notification_read",
        "mark_all_notifications_read",
        "delete_notification",
        "delete_all_notifications",
    ):
        getattr(api, name).return_value = ok
    return api


@pytest.fixture
def session_store():
    return StaticSessionStore(api_token="test-api-token", professional_id=42)


@pytest.fixture
def notifier():
    return BufferedUserNotifier()


@pytest.fixture
def make_notification():
    def _make(
        notification_id: int,
        category: NotificationCategory = NotificationCategory.BOOKING,
        read: bool = False,
        minutes_ago: Optional[int] = None,
    ) -> Notification:
        # Default ordering: higher id is newer.
        age = minutes_ago if minutes_ago is not None else 1000 - notification_id
        return Notification(
            id=notification_id,
            category=category,
            title=f"Notification {notification_id}",
            message=f"Body of notification {notification_id}",
            created_at=NOTIFICATION_EPOCH - datetime.timedelta(minutes=age),
            read=read,
            priority=NotificationPriority.MEDIUM,
        )
    return _make
