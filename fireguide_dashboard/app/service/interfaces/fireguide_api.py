from abc import ABC, abstractmethod
from typing import List

from fireguide_dashboard.app.models.notification import Notification, NotificationCategory
from fireguide_dashboard.infrastructure.fireguide_api.responses import RemoteResponse
from fireguide_dashboard.infrastructure.fireguide_api.schemas import (
    CredentialFileRecord,
    EvidenceRecord,
    InsuranceCoverageRecord,
    UploadRequest,
    VerificationSummaryData,
)


class AbstractFireGuideApi(ABC):
    """
    Remote-call abstraction over the FireGuide REST backend.

    Every method either returns a payload from a successful response or
    raises RemoteCallError; callers never inspect raw envelopes.
    """

    # --- Verification reads ---
    @abstractmethod
    async def fetch_identity_records(self, api_token: str) -> List[CredentialFileRecord]:
        pass

    @abstractmethod
    async def fetch_dbs_records(self, api_token: str) -> List[CredentialFileRecord]:
        pass

    @abstractmethod
    async def fetch_qualification_evidence(self, api_token: str) -> List[EvidenceRecord]:
        pass

    @abstractmethod
    async def fetch_insurance_coverage(self, api_token: str) -> List[InsuranceCoverageRecord]:
        pass

    @abstractmethod
    async def fetch_verification_summary(self, api_token: str) -> VerificationSummaryData:
        pass

    # --- Verification writes ---
    @abstractmethod
    async def update_identity_document(self, upload: UploadRequest) -> RemoteResponse:
        pass

    @abstractmethod
    async def update_dbs_document(self, upload: UploadRequest) -> RemoteResponse:
        pass

    @abstractmethod
    async def store_qualification_evidence(self, upload: UploadRequest) -> RemoteResponse:
        """Creates an evidence item, or updates one when the body carries an id."""
        pass

    # --- Notifications ---
    @abstractmethod
    async def fetch_notifications_by_category(self, api_token: str, category: NotificationCategory) -> List[Notification]:
        pass

    @abstractmethod
    async def fetch_unread_notifications(self, api_token: str) -> List[Notification]:
        pass

    @abstractmethod
    async def mark_notification_read(self, api_token: str, notification_id: int) -> RemoteResponse:
        pass

    @abstractmethod
    async def mark_all_notifications_read(self, api_token: str) -> RemoteResponse:
        pass

    @abstractmethod
    async def delete_notification(self, api_token: str, notification_id: int) -> RemoteResponse:
        pass

    @abstractmethod
    async def delete_all_notifications(self, api_token: str) -> RemoteResponse:
        pass
