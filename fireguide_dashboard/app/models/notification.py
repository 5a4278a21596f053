import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationCategory(str, Enum):
    BOOKING = "booking"
    PAYMENT = "payment"
    REVIEW = "review"
    SYSTEM = "system"

class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class ViewSelector(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    BOOKING = "booking"
    PAYMENT = "payment"
    REVIEW = "review"
    SYSTEM = "system"

    @property
    def category(self) -> Optional[NotificationCategory]:
        """The notification category this selector maps to, None for all/unread."""
        if self in (ViewSelector.ALL, ViewSelector.UNREAD):
            return None
        return NotificationCategory(self.value)


class Notification(BaseModel):
    id: int # unique across categories
    category: NotificationCategory
    title: str
    message: str
    created_at: Optional[datetime.datetime] = None
    read: bool = False
    priority: NotificationPriority = NotificationPriority.MEDIUM
