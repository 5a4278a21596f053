# Response envelope shared by every FireGuide API endpoint
from typing import Optional, Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

SUCCESS_MARKER = "success"
FAILURE_MARKERS = ("error", "failed", "failure", "fail")


def flatten_message(value: Any) -> Optional[str]:
    """
    Reduces a remote message to one line of text.

    Validation failures arrive as ``{"field": ["reason", ...]}``; every
    string leaf is kept, in order.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        parts = [flatten_message(item) for item in value.values()]
    elif isinstance(value, (list, tuple)):
        parts = [flatten_message(item) for item in value]
    else:
        return str(value)
    return " ".join(part for part in parts if part) or None


class RemoteResponse(BaseModel):
    """
    Envelope returned by the FireGuide API.

    The backend is inconsistent across endpoints: some answer with
    ``status: true``, some with ``status: "success"``, some with
    ``success: true`` and some only with a ``data`` payload.
    """
    model_config = ConfigDict(extra="allow")

    status: Optional[Union[bool, str, int]] = None
    success: Optional[Union[bool, str]] = None
    message: Optional[str] = None
    error: Optional[Any] = None
    data: Optional[Any] = None

    @field_validator("message", mode="before")
    @classmethod
    def _flatten_structured_message(cls, value: Any) -> Optional[str]:
        return flatten_message(value)

    @property
    def ok(self) -> bool:
        return is_success(self.model_dump())

    @property
    def error_text(self) -> Optional[str]:
        return flatten_message(self.error)


def _marker(value: Any) -> Optional[bool]:
    # True/False for a recognised marker, None when the field says nothing.
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == SUCCESS_MARKER:
            return True
        if lowered in FAILURE_MARKERS or lowered == "false":
            return False
    return None


def is_success(body: Any) -> bool:
    """
    Normalizes the backend's success signals into one boolean.

    Accepted as success: ``status``/``success`` set to ``True``, either set
    to the string ``"success"``, or a non-null ``data`` payload without an
    ``error`` field. An explicit failure marker wins over payload presence.
    """
    if body is None:
        return False
    if isinstance(body, RemoteResponse):
        body = body.model_dump()
    if not isinstance(body, dict):
        # Bare JSON arrays/objects are payloads without an envelope.
        return isinstance(body, list)

    markers = [_marker(body.get("status")), _marker(body.get("success"))]
    if False in markers:
        return False
    if True in markers:
        return True
    return body.get("data") is not None and not body.get("error")
