# Client for the FireGuide REST backend
import logging
from typing import Optional, Dict, Any, List, Type, TypeVar

import httpx
from fastapi import Depends
from pydantic import BaseModel, ValidationError

from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.dependencies.http_client import get_http_client
from fireguide_dashboard.app.models.notification import Notification, NotificationCategory
from fireguide_dashboard.app.service.exceptions import RemoteCallError
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.infrastructure.fireguide_api.responses import RemoteResponse, flatten_message
from fireguide_dashboard.infrastructure.fireguide_api.schemas import (
    API_CATEGORY_NAMES,
    CredentialFileRecord,
    EvidenceRecord,
    InsuranceCoverageRecord,
    NotificationApiItem,
    UploadRequest,
    VerificationSummaryData,
)

logger = logging.getLogger(__name__)

NETWORK_FAILURE_MESSAGE = "No response from server. Please check your connection."

# Logical endpoint -> path under FIREGUIDE_API_BASE_URL
ENDPOINTS: Dict[str, str] = {
    "read_identity": "/professional_wise_identity",
    "read_dbs": "/professional_wise_bds",
    "list_qualification_evidence": "/qualifications-certification/professional_wise_evidence",
    "list_insurance_coverage": "/insurance-coverage/professional_wise_insurance",
    "read_verification_summary": "/professional/verification_summary",
    "update_identity": "/professional_identity/update",
    "update_dbs": "/professional_dbs/update",
    "store_qualification_evidence": "/qualifications-certification/evidence/store",
    "notifications_by_category": "/notifications/category",
    "notifications_unread": "/notifications/unread",
    "notification_mark_read": "/notifications/mark_as_read",
    "notifications_mark_all_read": "/notifications/mark_all_as_read",
    "notification_delete": "/notifications/delete",
    "notifications_delete_all": "/notifications/delete_all",
}

RecordT = TypeVar("RecordT", bound=BaseModel)


def _body_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    return flatten_message(body.get("message")) or flatten_message(body.get("error"))


def _remote_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return _body_message(body)


class FireGuideApiClient(AbstractFireGuideApi):
    def __init__(self, http_client: httpx.AsyncClient, base_url: Optional[str] = None):
        self.http_client = http_client
        self.base_url = (base_url or settings.FIREGUIDE_API_BASE_URL).rstrip("/")

    async def _post(
        self,
        endpoint: str,
        failure_message: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> RemoteResponse:
        path = ENDPOINTS[endpoint]
        request_url = f"{self.base_url}{path}"
        logger.debug(f"POST {path} (json={json is not None}, multipart={files is not None})")

        try:
            response = await self.http_client.post(request_url, json=json, data=data, files=files)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error calling FireGuide API {path}: {e.response.status_code} - {e.response.text}")
            message = _remote_message(e.response) or failure_message
            raise RemoteCallError(message, endpoint=path, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"Request error calling FireGuide API {path}: {e}")
            raise RemoteCallError(NETWORK_FAILURE_MESSAGE, endpoint=path) from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"FireGuide API {path} returned a non-JSON body (status {response.status_code}).")
            raise RemoteCallError(failure_message, endpoint=path, status_code=response.status_code) from e

        try:
            envelope = RemoteResponse.model_validate(body) if isinstance(body, dict) else RemoteResponse(data=body)
        except ValidationError as e:
            message = _body_message(body) or failure_message
            logger.error(f"FireGuide API {path} returned an unrecognised envelope: {e}")
            raise RemoteCallError(message, endpoint=path, status_code=response.status_code) from e
        if not envelope.ok:
            message = envelope.message or envelope.error_text or failure_message
            logger.warning(f"FireGuide API {path} reported failure: {message}")
            raise RemoteCallError(message, endpoint=path, status_code=response.status_code)
        return envelope

    @staticmethod
    def _parse_list(envelope: RemoteResponse, model: Type[RecordT], endpoint: str) -> List[RecordT]:
        data = envelope.data
        if data is None:
            return []
        # Paginated endpoints nest the rows one level deeper.
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            data = data["data"]
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise RemoteCallError(f"Unexpected payload from {ENDPOINTS[endpoint]}", endpoint=ENDPOINTS[endpoint])
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            logger.error(f"Could not parse payload from {ENDPOINTS[endpoint]}: {e}")
            raise RemoteCallError(f"Unexpected payload from {ENDPOINTS[endpoint]}", endpoint=ENDPOINTS[endpoint]) from e

    # --- Verification reads ---

    async def fetch_identity_records(self, api_token: str) -> List[CredentialFileRecord]:
        envelope = await self._post("read_identity", "Failed to fetch professional wise identity", json={"api_token": api_token})
        return self._parse_list(envelope, CredentialFileRecord, "read_identity")

    async def fetch_dbs_records(self, api_token: str) -> List[CredentialFileRecord]:
        envelope = await self._post("read_dbs", "Failed to fetch professional wise DBS", json={"api_token": api_token})
        return self._parse_list(envelope, CredentialFileRecord, "read_dbs")

    async def fetch_qualification_evidence(self, api_token: str) -> List[EvidenceRecord]:
        envelope = await self._post(
            "list_qualification_evidence", "Failed to fetch professional wise evidence", json={"api_token": api_token}
        )
        return self._parse_list(envelope, EvidenceRecord, "list_qualification_evidence")

    async def fetch_insurance_coverage(self, api_token: str) -> List[InsuranceCoverageRecord]:
        envelope = await self._post(
            "list_insurance_coverage", "Failed to fetch insurance coverage", json={"api_token": api_token}
        )
        return self._parse_list(envelope, InsuranceCoverageRecord, "list_insurance_coverage")

    async def fetch_verification_summary(self, api_token: str) -> VerificationSummaryData:
        envelope = await self._post(
            "read_verification_summary", "Failed to fetch verification summary", json={"api_token": api_token}
        )
        if not isinstance(envelope.data, dict):
            raise RemoteCallError("Verification summary missing from response", endpoint=ENDPOINTS["read_verification_summary"])
        try:
            return VerificationSummaryData.model_validate(envelope.data)
        except ValidationError as e:
            raise RemoteCallError("Unexpected verification summary payload", endpoint=ENDPOINTS["read_verification_summary"]) from e

    # --- Verification writes ---

    async def _upload(self, endpoint: str, upload: UploadRequest, failure_message: str) -> RemoteResponse:
        if upload.encoding == "inline":
            return await self._post(endpoint, failure_message, json=upload.json_body)
        return await self._post(endpoint, failure_message, data=upload.form_fields, files=upload.files)

    async def update_identity_document(self, upload: UploadRequest) -> RemoteResponse:
        return await self._upload("update_identity", upload, "Failed to update professional identity")

    async def update_dbs_document(self, upload: UploadRequest) -> RemoteResponse:
        return await self._upload("update_dbs", upload, "Failed to update professional DBS")

    async def store_qualification_evidence(self, upload: UploadRequest) -> RemoteResponse:
        return await self._upload("store_qualification_evidence", upload, "Failed to upload qualification evidence")

    # --- Notifications ---

    async def _fetch_notifications(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        failure_message: str,
        category: Optional[NotificationCategory] = None,
    ) -> List[Notification]:
        envelope = await self._post(endpoint, failure_message, json=payload)
        items = self._parse_list(envelope, NotificationApiItem, endpoint)
        return [item.to_notification(fallback_category=category) for item in items]

    async def fetch_notifications_by_category(self, api_token: str, category: NotificationCategory) -> List[Notification]:
        category = NotificationCategory(category)
        return await self._fetch_notifications(
            "notifications_by_category",
            {"api_token": api_token, "category": API_CATEGORY_NAMES[category]},
            f"Failed to fetch {category.value} notifications",
            category=category,
        )

    async def fetch_unread_notifications(self, api_token: str) -> List[Notification]:
        return await self._fetch_notifications(
            "notifications_unread", {"api_token": api_token}, "Failed to fetch unread notifications"
        )

    async def mark_notification_read(self, api_token: str, notification_id: int) -> RemoteResponse:
        return await self._post(
            "notification_mark_read", "Failed to mark notification as read",
            json={"api_token": api_token, "id": notification_id},
        )

    async def mark_all_notifications_read(self, api_token: str) -> RemoteResponse:
        return await self._post(
            "notifications_mark_all_read", "Failed to mark all notifications as read", json={"api_token": api_token}
        )

    async def delete_notification(self, api_token: str, notification_id: int) -> RemoteResponse:
        return await self._post(
            "notification_delete", "Failed to delete notification",
            json={"api_token": api_token, "id": notification_id},
        )

    async def delete_all_notifications(self, api_token: str) -> RemoteResponse:
        return await self._post(
            "notifications_delete_all", "Failed to delete all notifications", json={"api_token": api_token}
        )


# DI provider for FireGuideApiClient
def get_fireguide_api_client(
    http_client: httpx.AsyncClient = Depends(get_http_client)
) -> AbstractFireGuideApi:
    return FireGuideApiClient(http_client=http_client)
