from .verification import (
    Document,
    RequirementKind,
    RequirementStatus,
    SummarySource,
    VerificationRequirement,
    VerificationState,
    VerificationSummary,
)
from .notification import Notification, NotificationCategory, NotificationPriority, ViewSelector

__all__ = [
    "Document",
    "RequirementKind",
    "RequirementStatus",
    "SummarySource",
    "VerificationRequirement",
    "VerificationState",
    "VerificationSummary",
    "Notification",
    "NotificationCategory",
    "NotificationPriority",
    "ViewSelector",
]
