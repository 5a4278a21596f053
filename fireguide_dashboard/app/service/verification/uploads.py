# File-kind gate and request encoding for verification evidence uploads
import base64
import logging
import posixpath
from enum import Enum
from typing import Optional, Dict, Tuple

from pydantic import BaseModel

from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.service.exceptions import InvalidFileError
from fireguide_dashboard.infrastructure.fireguide_api.schemas import UploadRequest

logger = logging.getLogger(__name__)


class FileKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"


# Allowed media types and the extensions that go with them.
ALLOWED_IMAGE_TYPES: Dict[str, Tuple[str, ...]] = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
    "image/webp": (".webp",),
}

ALLOWED_DOCUMENT_TYPES: Dict[str, Tuple[str, ...]] = {
    "application/pdf": (".pdf",),
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
    "application/vnd.ms-excel": (".xls",),
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": (".xlsx",),
    "application/vnd.ms-powerpoint": (".ppt",),
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": (".pptx",),
}

# Browsers and proxies send these when they do not know the type.
GENERIC_MEDIA_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}

_KIND_BY_MEDIA_TYPE: Dict[str, FileKind] = {
    **{media_type: FileKind.IMAGE for media_type in ALLOWED_IMAGE_TYPES},
    **{media_type: FileKind.DOCUMENT for media_type in ALLOWED_DOCUMENT_TYPES},
}
_MEDIA_TYPE_BY_EXTENSION: Dict[str, str] = {
    extension: media_type
    for media_type, extensions in {**ALLOWED_IMAGE_TYPES, **ALLOWED_DOCUMENT_TYPES}.items()
    for extension in extensions
}


class EvidenceFile(BaseModel):
    filename: str
    content_type: Optional[str] = None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class ClassifiedFile(BaseModel):
    file: EvidenceFile
    kind: FileKind
    media_type: str


def _extension(filename: str) -> str:
    base_name = posixpath.basename(filename.replace("\\", "/")).lower()
    _, extension = posixpath.splitext(base_name)
    return extension


def _describe_limit(limit: int) -> str:
    if limit >= 1024 * 1024:
        return f"{limit // (1024 * 1024)} MB"
    return f"{limit} bytes"


def ensure_within_upload_limit(filename: Optional[str], size: int, max_bytes: Optional[int] = None) -> int:
    """Size gate on its own, so a stream can be refused before its body is read."""
    limit = max_bytes if max_bytes is not None else settings.MAX_EVIDENCE_UPLOAD_BYTES
    if size > limit:
        raise InvalidFileError(filename, f"file is larger than the {_describe_limit(limit)} limit")
    return limit


def classify_file(file: EvidenceFile, max_bytes: Optional[int] = None) -> ClassifiedFile:
    """
    Validates an upload against the allow-list and the size ceiling.

    Both the declared media type and the file-name extension are checked;
    either may be missing, but a present one must be allowed and the two
    must agree on image vs document. Raises InvalidFileError.
    """
    if file.size == 0:
        raise InvalidFileError(file.filename, "file is empty")
    ensure_within_upload_limit(file.filename, file.size, max_bytes)

    declared = (file.content_type or "").split(";")[0].strip().lower()
    declared = MEDIA_TYPE_ALIASES.get(declared, declared)
    declared_kind = _KIND_BY_MEDIA_TYPE.get(declared)
    if declared not in GENERIC_MEDIA_TYPES and declared_kind is None:
        raise InvalidFileError(file.filename, f"file type '{declared}' is not allowed")

    extension = _extension(file.filename)
    extension_media_type = _MEDIA_TYPE_BY_EXTENSION.get(extension)
    if extension and extension_media_type is None:
        raise InvalidFileError(file.filename, f"file extension '{extension}' is not allowed")

    if declared_kind is None and extension_media_type is None:
        raise InvalidFileError(file.filename, "file type could not be determined")

    extension_kind = _KIND_BY_MEDIA_TYPE[extension_media_type] if extension_media_type else None
    if declared_kind and extension_kind and declared_kind != extension_kind:
        raise InvalidFileError(
            file.filename, f"declared type '{declared}' does not match extension '{extension}'"
        )

    kind = extension_kind or declared_kind
    media_type = declared if declared_kind else extension_media_type
    return ClassifiedFile(file=file, kind=kind, media_type=media_type)


def encode_inline(classified: ClassifiedFile) -> str:
    """Self-describing inline payload: a base64 data URL."""
    encoded = base64.b64encode(classified.file.content).decode("ascii")
    return f"data:{classified.media_type};base64,{encoded}"


def build_upload_request(
    classified: ClassifiedFile,
    api_token: str,
    professional_id: int,
    file_field: str,
    record_id: Optional[int] = None,
) -> UploadRequest:
    """
    Images go inline in a JSON body; every other accepted document goes as a
    binary multipart part. Only the file kind decides.
    """
    fields: Dict[str, object] = {"api_token": api_token, "professional_id": professional_id}
    if record_id is not None:
        fields["id"] = record_id

    if classified.kind == FileKind.IMAGE:
        logger.debug(f"Encoding '{classified.file.filename}' inline ({classified.media_type}, {classified.file.size} bytes).")
        return UploadRequest(encoding="inline", json_body={**fields, file_field: encode_inline(classified)})

    logger.debug(f"Encoding '{classified.file.filename}' as multipart ({classified.media_type}, {classified.file.size} bytes).")
    return UploadRequest(
        encoding="multipart",
        form_fields={key: str(value) for key, value in fields.items()},
        files={file_field: (posixpath.basename(classified.file.filename.replace("\\", "/")), classified.file.content, classified.media_type)},
    )
