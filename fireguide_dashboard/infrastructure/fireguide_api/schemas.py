# Pydantic models for FireGuide API payloads (wire format, not the dashboard view)
import datetime
import logging
from typing import Optional, Dict, Any, Tuple, Literal

from pydantic import BaseModel, ConfigDict, Field

from fireguide_dashboard.app.models.notification import (
    Notification,
    NotificationCategory,
    NotificationPriority,
)

logger = logging.getLogger(__name__)


class ProfessionalRef(BaseModel):
    id: int
    name: Optional[str] = None


class RemoteRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    status: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


# Identity and DBS records share one shape on the backend.
class CredentialFileRecord(RemoteRecord):
    file: Optional[str] = None
    professional: Optional[ProfessionalRef] = None

class EvidenceRecord(RemoteRecord):
    evidence: Optional[str] = None # URL or storage path of the uploaded file

class InsuranceCoverageRecord(RemoteRecord):
    title: Optional[str] = None
    price: Optional[str] = None
    expire_date: Optional[str] = None
    provider_id: Optional[int] = None
    professional: Optional[ProfessionalRef] = None

class VerificationSummaryData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    subtitle: Optional[str] = None
    active_status: Optional[str] = None
    progress_percentage: Optional[float] = None
    checks: Dict[str, bool] = Field(default_factory=dict)


# Backend uses plural category names.
API_CATEGORY_NAMES: Dict[NotificationCategory, str] = {
    NotificationCategory.BOOKING: "bookings",
    NotificationCategory.PAYMENT: "payments",
    NotificationCategory.REVIEW: "reviews",
    NotificationCategory.SYSTEM: "system",
}
_CATEGORY_BY_API_NAME = {api_name: category for category, api_name in API_CATEGORY_NAMES.items()}


class NotificationApiItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    user_id: Optional[int] = None
    title: str = ""
    content: str = ""
    priority: Optional[str] = None
    category: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    def to_notification(self, fallback_category: Optional[NotificationCategory] = None) -> Notification:
        raw_category = (self.category or "").strip().lower()
        category = _CATEGORY_BY_API_NAME.get(raw_category)
        if category is None:
            try:
                category = NotificationCategory(raw_category)
            except ValueError:
                category = fallback_category or NotificationCategory.SYSTEM
                logger.warning(f"Notification {self.id} has unknown category '{self.category}'. Filed under '{category.value}'.")
        try:
            priority = NotificationPriority((self.priority or "").strip().lower())
        except ValueError:
            priority = NotificationPriority.MEDIUM
        return Notification(
            id=self.id,
            category=category,
            title=self.title,
            message=self.content,
            created_at=self.created_at,
            read=self.is_read,
            priority=priority,
        )


class UploadRequest(BaseModel):
    """
    A ready-to-send evidence upload body.

    ``inline`` uploads carry everything in ``json_body``; ``multipart``
    uploads carry plain form fields plus one binary file part.
    """
    encoding: Literal["inline", "multipart"]
    json_body: Optional[Dict[str, Any]] = None
    form_fields: Optional[Dict[str, str]] = None
    files: Optional[Dict[str, Tuple[str, bytes, str]]] = None
