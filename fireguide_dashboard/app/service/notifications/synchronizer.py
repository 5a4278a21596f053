# Notification synchronizer: aggregate inbox plus the selected view, kept consistent
import logging
from typing import Optional, List, Dict, Awaitable, Callable

from fireguide_dashboard.app.models.notification import Notification, NotificationCategory, ViewSelector
from fireguide_dashboard.app.observability import tracer, slice_fetch_failures_counter, notification_mutations_counter
from fireguide_dashboard.app.service.concurrency import settle_all
from fireguide_dashboard.app.service.exceptions import NotAuthenticatedError, RemoteCallError
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.app.service.interfaces.session_store import AbstractSessionStore
from fireguide_dashboard.app.service.interfaces.user_notifier import AbstractUserNotifier
from fireguide_dashboard.app.service.notifications.cache import (
    NotificationCache,
    filter_notifications,
    sort_newest_first,
)
from fireguide_dashboard.infrastructure.fireguide_api.responses import RemoteResponse

logger = logging.getLogger(__name__)


class NotificationSynchronizer:
    """
    Maintains the aggregate cache and the currently selected view.

    For `all` and `unread` the view is filtered from the aggregate cache;
    for a category it is the slice fetched for that category, which is also
    upserted into the cache. Successful mutations are mirrored into both,
    so no view can disagree with another about a notification.
    """

    def __init__(
        self,
        api: AbstractFireGuideApi,
        session_store: AbstractSessionStore,
        notifier: AbstractUserNotifier,
        cache: Optional[NotificationCache] = None,
    ):
        self.api = api
        self.session_store = session_store
        self.notifier = notifier
        self.cache = cache if cache is not None else NotificationCache()
        self._selector = ViewSelector.ALL
        self._view_slice: List[Notification] = []

    @property
    def selector(self) -> ViewSelector:
        return self._selector

    def _require_token(self) -> str:
        token = self.session_store.get_session_token()
        if not token:
            error = NotAuthenticatedError("session token")
            logger.warning(f"Notification request rejected: {error}")
            self.notifier.error(str(error))
            raise error
        return token

    # --- Loading ---

    async def _load_all(self, token: str) -> None:
        categories = list(NotificationCategory)
        results = await settle_all(
            [self.api.fetch_notifications_by_category(token, category) for category in categories]
        )
        merged: List[Notification] = []
        for category, result in zip(categories, results):
            if result.ok:
                merged.extend(result.value)
                continue
            logger.warning(f"Notifications for category '{category.value}' failed to load; showing none: {result.error}")
            slice_fetch_failures_counter.add(1, {"slice": f"notifications.{category.value}"})
        self.cache.replace_all(merged)
        self._selector = ViewSelector.ALL
        self._view_slice = []

    async def load_view(self, selector: ViewSelector) -> List[Notification]:
        selector = ViewSelector(selector)
        token = self._require_token()
        with tracer.start_as_current_span("notifications.load_view") as span:
            span.set_attribute("selector", selector.value)
            if selector == ViewSelector.ALL:
                await self._load_all(token)
                return self.visible_notifications()

            try:
                if selector == ViewSelector.UNREAD:
                    fetched = await self.api.fetch_unread_notifications(token)
                else:
                    fetched = await self.api.fetch_notifications_by_category(token, selector.category)
            except RemoteCallError as e:
                logger.warning(f"Loading notifications view '{selector.value}' failed: {e.message}")
                self.notifier.error(e.message)
                return self.visible_notifications()

            if selector == ViewSelector.UNREAD:
                self.cache.replace_unread(fetched)
                self._view_slice = []
            else:
                self.cache.upsert_category(selector.category, fetched)
                self._view_slice = list(fetched)
            self._selector = selector
            logger.info(f"Loaded {len(fetched)} notifications for view '{selector.value}'.")
        return self.visible_notifications()

    # --- Derived values ---

    def visible_notifications(self) -> List[Notification]:
        if self._selector in (ViewSelector.ALL, ViewSelector.UNREAD):
            source = self.cache.items()
        else:
            source = sort_newest_first(self._view_slice)
        return filter_notifications(source, self._selector)

    def unread_count(self) -> int:
        # Badge count follows the aggregate, whatever tab is showing.
        return self.cache.unread_count()

    def category_counts(self) -> Dict[NotificationCategory, int]:
        return self.cache.category_counts()

    # --- Mutations ---

    async def _call_remote(
        self,
        action: str,
        call: Callable[[], Awaitable[RemoteResponse]],
    ) -> None:
        try:
            await call()
        except RemoteCallError as e:
            notification_mutations_counter.add(1, {"action": action, "outcome": "failure"})
            logger.error(f"Notification action '{action}' failed: {e.message}")
            self.notifier.error(e.message)
            raise
        notification_mutations_counter.add(1, {"action": action, "outcome": "success"})

    async def mark_read(self, notification_id: int) -> None:
        token = self._require_token()
        await self._call_remote("mark_read", lambda: self.api.mark_notification_read(token, notification_id))
        self.cache.mark_read(notification_id)
        self._view_slice = [
            n.model_copy(update={"read": True}) if n.id == notification_id else n
            for n in self._view_slice
        ]

    async def mark_all_read(self) -> None:
        token = self._require_token()
        await self._call_remote("mark_all_read", lambda: self.api.mark_all_notifications_read(token))
        self.cache.mark_all_read()
        self._view_slice = [n.model_copy(update={"read": True}) for n in self._view_slice]
        self.notifier.success("All notifications marked as read")

    async def delete_one(self, notification_id: int) -> None:
        token = self._require_token()
        await self._call_remote("delete_one", lambda: self.api.delete_notification(token, notification_id))
        self.cache.remove(notification_id)
        self._view_slice = [n for n in self._view_slice if n.id != notification_id]
        self.notifier.success("Notification deleted")

    async def delete_all(self) -> None:
        token = self._require_token()
        await self._call_remote("delete_all", lambda: self.api.delete_all_notifications(token))
        self.cache.clear()
        self._view_slice = []
        self.notifier.success("All notifications cleared")

    def discard(self) -> None:
        self.cache.close()
        self._view_slice = []
        self._selector = ViewSelector.ALL
