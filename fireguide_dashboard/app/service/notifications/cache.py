# Aggregate notification cache owned by one dashboard session
import logging
from typing import Optional, List, Dict, Iterable

from fireguide_dashboard.app.models.notification import Notification, NotificationCategory, ViewSelector

logger = logging.getLogger(__name__)


def _newest_first_key(notification: Notification):
    stamp = notification.created_at
    return (stamp is not None, stamp.timestamp() if stamp else 0.0, notification.id)


def sort_newest_first(notifications: Iterable[Notification]) -> List[Notification]:
    return sorted(notifications, key=_newest_first_key, reverse=True)


def filter_notifications(notifications: Iterable[Notification], selector: ViewSelector) -> List[Notification]:
    """Pure view filter; never mutates or fetches."""
    selector = ViewSelector(selector)
    if selector == ViewSelector.ALL:
        return list(notifications)
    if selector == ViewSelector.UNREAD:
        return [n for n in notifications if not n.read]
    return [n for n in notifications if n.category == selector.category]


class NotificationCache:
    """
    Every notification currently known to the client, keyed by id.

    Created when a dashboard session starts and discarded with close() on
    logout. All mutations address notifications by id, so two mutations
    resolving out of order cannot touch the wrong item.
    """

    def __init__(self):
        self._items: Dict[int, Notification] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: int) -> bool:
        return notification_id in self._items

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, notification_id: int) -> Optional[Notification]:
        return self._items.get(notification_id)

    def items(self) -> List[Notification]:
        return sort_newest_first(self._items.values())

    def replace_all(self, notifications: Iterable[Notification]) -> None:
        self._items = {n.id: n for n in notifications}
        logger.debug(f"Notification cache replaced wholesale ({len(self._items)} items).")

    def upsert_category(self, category: NotificationCategory, notifications: Iterable[Notification]) -> None:
        """Drops every cached item of `category`, then stores the fresh set."""
        category = NotificationCategory(category)
        kept = {nid: n for nid, n in self._items.items() if n.category != category}
        for notification in notifications:
            kept[notification.id] = notification
        self._items = kept
        logger.debug(f"Notification cache reconciled for category '{category.value}' ({len(self._items)} items).")

    def replace_unread(self, notifications: Iterable[Notification]) -> None:
        """Drops every cached unread item, then stores the fresh unread set."""
        kept = {nid: n for nid, n in self._items.items() if n.read}
        for notification in notifications:
            kept[notification.id] = notification
        self._items = kept

    def mark_read(self, notification_id: int) -> bool:
        notification = self._items.get(notification_id)
        if notification is None:
            return False
        if not notification.read:
            self._items[notification_id] = notification.model_copy(update={"read": True})
        return True

    def mark_all_read(self) -> None:
        self._items = {
            nid: n if n.read else n.model_copy(update={"read": True})
            for nid, n in self._items.items()
        }

    def remove(self, notification_id: int) -> bool:
        return self._items.pop(notification_id, None) is not None

    def clear(self) -> None:
        self._items = {}

    def unread_count(self) -> int:
        return sum(1 for n in self._items.values() if not n.read)

    def category_counts(self) -> Dict[NotificationCategory, int]:
        counts = {category: 0 for category in NotificationCategory}
        for notification in self._items.values():
            counts[notification.category] += 1
        return counts

    def close(self) -> None:
        self.clear()
        self._closed = True
