# API Router for the professional's verification status
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.dependencies.sessions import get_dashboard_session
from fireguide_dashboard.app.models.verification import RequirementKind, VerificationState
from fireguide_dashboard.app.service.exceptions import (
    InvalidFileError,
    MissingRecordError,
    NotAuthenticatedError,
    RemoteCallError,
    UnsupportedRequirementError,
)
from fireguide_dashboard.app.service.session import DashboardSession
from fireguide_dashboard.app.service.verification.uploads import EvidenceFile, ensure_within_upload_limit

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=VerificationState, summary="Current verification state from the session cache.")
async def get_verification_state_api(session: DashboardSession = Depends(get_dashboard_session)):
    return session.verification.state


@router.post("/refresh", response_model=VerificationState, summary="Reload every verification slice concurrently.")
async def refresh_verification_api(session: DashboardSession = Depends(get_dashboard_session)):
    try:
        return await session.verification.refresh_all()
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post(
    "/{kind}/refresh",
    response_model=VerificationState,
    summary="Reload a single verification slice."
)
async def refresh_requirement_api(kind: RequirementKind, session: DashboardSession = Depends(get_dashboard_session)):
    try:
        return await session.verification.refresh_requirement(kind)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post(
    "/{kind}/evidence",
    response_model=VerificationState,
    summary="Upload evidence for identity, DBS or qualifications."
)
async def submit_evidence_api(
    kind: RequirementKind,
    file: UploadFile = File(...),
    target_id: Optional[int] = Form(default=None),
    session: DashboardSession = Depends(get_dashboard_session),
):
    limit = settings.MAX_EVIDENCE_UPLOAD_BYTES
    try:
        # The declared size is checked before reading; the bounded read covers streams without one.
        if file.size is not None:
            ensure_within_upload_limit(file.filename, file.size, limit)
        content = await file.read(limit + 1)
        ensure_within_upload_limit(file.filename, len(content), limit)
    except InvalidFileError as e:
        logger.warning(f"Rejected oversized {kind.value} evidence upload: {e}")
        session.notifier.error(str(e))
        raise HTTPException(status_code=400, detail=str(e))

    evidence = EvidenceFile(filename=file.filename or "", content_type=file.content_type, content=content)
    try:
        return await session.verification.submit_evidence(kind, evidence, target_id=target_id)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except (InvalidFileError, UnsupportedRequirementError) as e:
        logger.warning(f"Rejected {kind.value} evidence upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except MissingRecordError as e:
        logger.warning(f"Evidence upload without a backing record: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=e.message)
