# Unit tests for NotificationSynchronizer
from unittest.mock import patch

import httpx
import pytest

from fireguide_dashboard.app.models.notification import NotificationCategory, ViewSelector
from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError, RemoteCallError
from fireguide_dashboard.app.service.interfaces.session_store import StaticSessionStore
from fireguide_dashboard.app.service.notifications.synchronizer import NotificationSynchronizer
from fireguide_dashboard.infrastructure.fireguide_api.client import FireGuideApiClient


@pytest.fixture
def feeds(make_notification):
    return {
        NotificationCategory.BOOKING: [make_notification(1, NotificationCategory.BOOKING),
                                       make_notification(3, NotificationCategory.BOOKING, read=True)],
        NotificationCategory.PAYMENT: [make_notification(2, NotificationCategory.PAYMENT)],
        NotificationCategory.REVIEW: [make_notification(4, NotificationCategory.REVIEW, read=True)],
        NotificationCategory.SYSTEM: [make_notification(5, NotificationCategory.SYSTEM, read=True)],
    }


@pytest.fixture
def synchronizer(mock_api, session_store, notifier, feeds):
    async def by_category(token, category):
        return list(feeds[category])

    mock_api.fetch_notifications_by_category.side_effect = by_category
    mock_api.fetch_unread_notifications.return_value = [
        n for items in feeds.values() for n in items if not n.read
    ]
    return NotificationSynchronizer(mock_api, session_store, notifier)


def _ids(notifications):
    return [n.id for n in notifications]


# --- Loading ---

@pytest.mark.asyncio
async def test_load_all_fans_out_over_every_category(synchronizer, mock_api):
    visible = await synchronizer.load_view(ViewSelector.ALL)

    requested = {call.args[1] for call in mock_api.fetch_notifications_by_category.await_args_list}
    assert requested == set(NotificationCategory)
    assert _ids(visible) == [5, 4, 3, 2, 1]
    assert synchronizer.unread_count() == 2


@pytest.mark.asyncio
async def test_load_all_keeps_categories_that_loaded(synchronizer, mock_api, feeds):
    async def payments_down(token, category):
        if category == NotificationCategory.PAYMENT:
            raise RemoteCallError("Failed to fetch payment notifications")
        return list(feeds[category])

    mock_api.fetch_notifications_by_category.side_effect = payments_down

    with patch("fireguide_dashboard.app.service.notifications.synchronizer.slice_fetch_failures_counter") as mock_counter:
        visible = await synchronizer.load_view(ViewSelector.ALL)

    assert _ids(visible) == [5, 4, 3, 1]
    mock_counter.add.assert_called_once_with(1, {"slice": "notifications.payment"})


@pytest.mark.asyncio
async def test_load_category_then_all_leaves_no_duplicates(synchronizer, mock_api, feeds, make_notification):
    await synchronizer.load_view(ViewSelector.BOOKING)
    # Booking feed changes between the two loads.
    feeds[NotificationCategory.BOOKING] = [
        make_notification(1, NotificationCategory.BOOKING, read=True),
        make_notification(6, NotificationCategory.BOOKING),
    ]

    await synchronizer.load_view(ViewSelector.ALL)

    ids = _ids(synchronizer.cache.items())
    assert len(ids) == len(set(ids))
    assert sorted(ids) == [1, 2, 4, 5, 6]
    assert synchronizer.cache.get(1).read is True


@pytest.mark.asyncio
async def test_category_view_reads_from_its_own_slice(synchronizer):
    await synchronizer.load_view(ViewSelector.ALL)

    visible = await synchronizer.load_view("booking")

    assert synchronizer.selector == ViewSelector.BOOKING
    assert _ids(visible) == [3, 1]
    # Badge still counts the whole inbox.
    assert synchronizer.unread_count() == 2


@pytest.mark.asyncio
async def test_unread_view_filters_the_aggregate(synchronizer, mock_api):
    await synchronizer.load_view(ViewSelector.ALL)

    visible = await synchronizer.load_view(ViewSelector.UNREAD)

    mock_api.fetch_unread_notifications.assert_awaited_once_with("test-api-token")
    assert _ids(visible) == [2, 1]
    assert len(synchronizer.cache) == 5


@pytest.mark.asyncio
async def test_failed_single_view_load_keeps_current_view(synchronizer, mock_api, notifier):
    await synchronizer.load_view(ViewSelector.ALL)
    notifier.drain()
    mock_api.fetch_unread_notifications.side_effect = RemoteCallError("Failed to fetch unread notifications")

    visible = await synchronizer.load_view(ViewSelector.UNREAD)

    assert synchronizer.selector == ViewSelector.ALL
    assert _ids(visible) == [5, 4, 3, 2, 1]
    assert notifier.drain() == [{"level": "error", "message": "Failed to fetch unread notifications"}]


@pytest.mark.asyncio
async def test_load_requires_token(mock_api, notifier):
    synchronizer = NotificationSynchronizer(mock_api, StaticSessionStore(api_token=""), notifier)

    with pytest.raises(NotAuthenticatedError):
        await synchronizer.load_view(ViewSelector.ALL)

    mock_api.fetch_notifications_by_category.assert_not_awaited()
    assert notifier.drain() == [
        {"level": "error", "message": "Not authenticated: no session token available. Please log in again."}
    ]


# --- Mutations ---

@pytest.mark.asyncio
async def test_mark_read_updates_cache_and_unread_view(synchronizer, mock_api, notifier):
    await synchronizer.load_view(ViewSelector.ALL)
    await synchronizer.load_view(ViewSelector.UNREAD)
    assert synchronizer.unread_count() == 2

    await synchronizer.mark_read(1)

    mock_api.mark_notification_read.assert_awaited_once_with("test-api-token", 1)
    assert synchronizer.unread_count() == 1
    assert synchronizer.cache.get(1).read is True
    assert _ids(synchronizer.visible_notifications()) == [2]
    assert notifier.drain() == []


@pytest.mark.asyncio
async def test_mark_read_updates_category_slice(synchronizer):
    await synchronizer.load_view(ViewSelector.BOOKING)

    await synchronizer.mark_read(1)

    booking_view = {n.id: n.read for n in synchronizer.visible_notifications()}
    assert booking_view == {1: True, 3: True}
    assert synchronizer.cache.get(1).read is True


@pytest.mark.asyncio
async def test_mark_all_read_clears_every_unread(synchronizer, notifier):
    await synchronizer.load_view(ViewSelector.ALL)
    await synchronizer.load_view(ViewSelector.PAYMENT)

    await synchronizer.mark_all_read()

    assert synchronizer.unread_count() == 0
    assert all(n.read for n in synchronizer.cache.items())
    assert all(n.read for n in synchronizer.visible_notifications())
    assert notifier.drain() == [{"level": "success", "message": "All notifications marked as read"}]


@pytest.mark.asyncio
async def test_delete_one_removes_from_cache_and_view(synchronizer, mock_api, notifier):
    await synchronizer.load_view(ViewSelector.BOOKING)

    await synchronizer.delete_one(3)

    mock_api.delete_notification.assert_awaited_once_with("test-api-token", 3)
    assert 3 not in synchronizer.cache
    assert _ids(synchronizer.visible_notifications()) == [1]
    assert notifier.drain() == [{"level": "success", "message": "Notification deleted"}]


@pytest.mark.asyncio
async def test_delete_all_clears_everything(synchronizer):
    await synchronizer.load_view(ViewSelector.ALL)

    await synchronizer.delete_all()

    assert len(synchronizer.cache) == 0
    assert synchronizer.visible_notifications() == []
    assert synchronizer.unread_count() == 0


@pytest.mark.asyncio
async def test_delete_all_failure_leaves_every_view_unchanged(synchronizer, mock_api, notifier):
    await synchronizer.load_view(ViewSelector.ALL)
    await synchronizer.load_view(ViewSelector.REVIEW)
    cache_before = synchronizer.cache.items()
    view_before = synchronizer.visible_notifications()
    notifier.drain()
    mock_api.delete_all_notifications.side_effect = RemoteCallError("Failed to delete all notifications")

    with pytest.raises(RemoteCallError):
        await synchronizer.delete_all()

    assert synchronizer.cache.items() == cache_before
    assert synchronizer.visible_notifications() == view_before
    assert synchronizer.unread_count() == 2
    assert notifier.drain() == [{"level": "error", "message": "Failed to delete all notifications"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("action, method, args", [
    ("mark_read", "mark_notification_read", (2,)),
    ("mark_all_read", "mark_all_notifications_read", ()),
    ("delete_one", "delete_notification", (2,)),
])
async def test_failed_mutation_does_not_touch_cache(synchronizer, mock_api, action, method, args):
    await synchronizer.load_view(ViewSelector.ALL)
    before = synchronizer.cache.items()
    getattr(mock_api, method).side_effect = RemoteCallError("backend refused")

    with patch("fireguide_dashboard.app.service.notifications.synchronizer.notification_mutations_counter") as mock_counter:
        with pytest.raises(RemoteCallError):
            await getattr(synchronizer, action)(*args)

    assert synchronizer.cache.items() == before
    mock_counter.add.assert_called_once_with(1, {"action": action, "outcome": "failure"})


@pytest.mark.asyncio
async def test_out_of_order_deletes_remove_their_own_targets(synchronizer):
    await synchronizer.load_view(ViewSelector.ALL)

    await synchronizer.delete_one(5)
    await synchronizer.delete_one(1)

    assert _ids(synchronizer.cache.items()) == [4, 3, 2]


@pytest.mark.asyncio
async def test_discard_resets_to_empty_all_view(synchronizer):
    await synchronizer.load_view(ViewSelector.BOOKING)

    synchronizer.discard()

    assert synchronizer.selector == ViewSelector.ALL
    assert synchronizer.visible_notifications() == []
    assert synchronizer.cache.closed is True


@pytest.mark.asyncio
@pytest.mark.parametrize("action, method, args", [
    ("mark_read", "mark_notification_read", (2,)),
    ("mark_all_read", "mark_all_notifications_read", ()),
    ("delete_one", "delete_notification", (2,)),
    ("delete_all", "delete_all_notifications", ()),
])
async def test_mutation_without_token_reports_error_and_makes_no_call(mock_api, notifier, action, method, args):
    synchronizer = NotificationSynchronizer(mock_api, StaticSessionStore(api_token=None), notifier)

    with pytest.raises(NotAuthenticatedError):
        await getattr(synchronizer, action)(*args)

    getattr(mock_api, method).assert_not_awaited()
    assert notifier.drain() == [
        {"level": "error", "message": "Not authenticated: no session token available. Please log in again."}
    ]


@pytest.mark.asyncio
async def test_structured_backend_message_reaches_the_notifier(session_store, notifier):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": False, "message": {"id": ["The selected id is invalid."]}})

    api = FireGuideApiClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), base_url="https://fireguide.test/api")
    synchronizer = NotificationSynchronizer(api, session_store, notifier)

    with pytest.raises(RemoteCallError):
        await synchronizer.delete_one(999)

    assert notifier.drain() == [{"level": "error", "message": "The selected id is invalid."}]
