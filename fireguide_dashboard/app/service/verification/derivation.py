# Pure derivation of the composite verification state from its remote slices
import datetime
from typing import Optional, List, Dict, Any, Sequence, Union
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.models.verification import (
    Document,
    RequirementKind,
    RequirementStatus,
    SummarySource,
    VerificationRequirement,
    VerificationState,
    VerificationSummary,
)
from fireguide_dashboard.infrastructure.fireguide_api.schemas import (
    CredentialFileRecord,
    EvidenceRecord,
    InsuranceCoverageRecord,
    RemoteRecord,
    VerificationSummaryData,
)

# Key of each requirement in the summary endpoint's `checks` map.
SUMMARY_CHECK_KEYS: Dict[RequirementKind, str] = {
    RequirementKind.IDENTITY: "identity",
    RequirementKind.QUALIFICATIONS: "certificate",
    RequirementKind.INSURANCE: "insurance",
    RequirementKind.DBS: "dbs",
}

VERIFIED_MARKERS = {"verified", "approved", "accepted"}
REJECTED_MARKERS = {"rejected", "declined"}
NOT_SUBMITTED_MARKERS = {"not_submitted", "not submitted", "missing"}


class VerificationSlices(BaseModel):
    """Last known server truth for each independently fetched resource."""
    identity: Optional[CredentialFileRecord] = None
    dbs: Optional[CredentialFileRecord] = None
    qualifications: List[EvidenceRecord] = Field(default_factory=list)
    insurance: List[InsuranceCoverageRecord] = Field(default_factory=list)
    summary: Optional[VerificationSummaryData] = None


def resolve_document_url(location_reference: Optional[str]) -> Optional[str]:
    """Turns a stored file reference into a URL the dashboard can fetch."""
    if not location_reference:
        return None
    if urlparse(location_reference).scheme in ("http", "https", "data"):
        return location_reference
    return f"{settings.DOCUMENT_STORAGE_BASE_URL.rstrip('/')}/{location_reference.lstrip('/')}"


def normalize_record_status(raw_status: Optional[str]) -> RequirementStatus:
    # Any record the backend holds but has not decided on counts as pending.
    lowered = (raw_status or "").strip().lower()
    if lowered in VERIFIED_MARKERS:
        return RequirementStatus.VERIFIED
    if lowered in REJECTED_MARKERS:
        return RequirementStatus.REJECTED
    if lowered in NOT_SUBMITTED_MARKERS:
        return RequirementStatus.NOT_SUBMITTED
    return RequirementStatus.PENDING


def _timestamp(record: RemoteRecord) -> Optional[datetime.datetime]:
    return record.updated_at or record.created_at


def _sort_key(record: RemoteRecord):
    stamp = _timestamp(record)
    # Records without timestamps sort before dated ones; id breaks ties.
    return (stamp is not None, stamp.timestamp() if stamp else 0.0, record.id)


def latest_record(records: Sequence[RemoteRecord]) -> Optional[RemoteRecord]:
    if not records:
        return None
    return max(records, key=_sort_key)


def derive_single_record_status(record: Optional[CredentialFileRecord]) -> RequirementStatus:
    if record is None:
        return RequirementStatus.NOT_SUBMITTED
    return normalize_record_status(record.status)


def derive_collection_status(items: Sequence[Union[EvidenceRecord, InsuranceCoverageRecord]]) -> RequirementStatus:
    if not items:
        return RequirementStatus.NOT_SUBMITTED
    if any(normalize_record_status(item.status) == RequirementStatus.VERIFIED for item in items):
        return RequirementStatus.VERIFIED
    return RequirementStatus.PENDING


def resolve_status(
    kind: RequirementKind,
    has_record: bool,
    slice_status: RequirementStatus,
    summary: Optional[VerificationSummaryData],
) -> RequirementStatus:
    """
    Picks the status shown for one requirement.

    No backing record always means not_submitted. Otherwise the summary's
    check wins when present (true -> verified, false -> pending, keeping a
    remote rejection visible); without it the slice's own status is used.
    """
    if not has_record:
        return RequirementStatus.NOT_SUBMITTED
    if summary is not None:
        check_key = SUMMARY_CHECK_KEYS[kind]
        if check_key in summary.checks:
            if summary.checks[check_key]:
                return RequirementStatus.VERIFIED
            if slice_status == RequirementStatus.REJECTED:
                return RequirementStatus.REJECTED
            return RequirementStatus.PENDING
    return slice_status


def _single_record_requirement(
    kind: RequirementKind,
    record: Optional[CredentialFileRecord],
    summary: Optional[VerificationSummaryData],
) -> VerificationRequirement:
    status = resolve_status(kind, record is not None, derive_single_record_status(record), summary)
    if record is None:
        return VerificationRequirement(kind=kind, status=status)
    return VerificationRequirement(
        kind=kind,
        status=status,
        verified_or_updated_at=_timestamp(record),
        details={
            "record_id": record.id,
            "location_reference": resolve_document_url(record.file),
            "remote_status": record.status,
        },
    )


def _evidence_document(record: EvidenceRecord) -> Document:
    display_name = f"Evidence #{record.id}"
    if record.evidence:
        path = urlparse(record.evidence).path or record.evidence
        display_name = path.rstrip("/").rsplit("/", 1)[-1] or display_name
    return Document(
        id=record.id,
        display_name=display_name,
        uploaded_at=record.created_at,
        location_reference=resolve_document_url(record.evidence),
        status=record.status,
    )


def _insurance_document(record: InsuranceCoverageRecord) -> Document:
    return Document(
        id=record.id,
        display_name=record.title or f"Insurance coverage #{record.id}",
        uploaded_at=record.created_at,
        status=record.status,
        extra={"price": record.price, "provider_id": record.provider_id, "expire_date": record.expire_date},
    )


def _latest_stamp(records: Sequence[RemoteRecord]) -> Optional[datetime.datetime]:
    newest = latest_record(records)
    return _timestamp(newest) if newest is not None else None


def _collection_requirement(
    kind: RequirementKind,
    records: Sequence[Union[EvidenceRecord, InsuranceCoverageRecord]],
    summary: Optional[VerificationSummaryData],
) -> VerificationRequirement:
    status = resolve_status(kind, bool(records), derive_collection_status(records), summary)
    details: Dict[str, Any] = {}
    if kind == RequirementKind.INSURANCE:
        evidence = [_insurance_document(record) for record in records]
        newest = latest_record(records)
        if newest is not None:
            details = {
                "provider_id": newest.provider_id,
                "price": newest.price,
                "expire_date": newest.expire_date,
                "title": newest.title,
            }
    else:
        evidence = [_evidence_document(record) for record in records]
    return VerificationRequirement(
        kind=kind,
        status=status,
        verified_or_updated_at=_latest_stamp(records),
        evidence=evidence,
        details=details,
    )


def derive_overall_status(requirements: Dict[RequirementKind, VerificationRequirement]) -> str:
    statuses = [requirement.status for requirement in requirements.values()]
    if all(status == RequirementStatus.VERIFIED for status in statuses):
        return RequirementStatus.VERIFIED.value
    if any(status == RequirementStatus.REJECTED for status in statuses):
        return RequirementStatus.REJECTED.value
    if any(status != RequirementStatus.NOT_SUBMITTED for status in statuses):
        return RequirementStatus.PENDING.value
    return RequirementStatus.NOT_SUBMITTED.value


def derive_completion_percentage(requirements: Dict[RequirementKind, VerificationRequirement]) -> float:
    verified = sum(1 for requirement in requirements.values() if requirement.status == RequirementStatus.VERIFIED)
    return round(100.0 * verified / len(RequirementKind), 2)


def build_state(slices: VerificationSlices) -> VerificationState:
    summary = slices.summary
    requirements = {
        RequirementKind.IDENTITY: _single_record_requirement(RequirementKind.IDENTITY, slices.identity, summary),
        RequirementKind.QUALIFICATIONS: _collection_requirement(RequirementKind.QUALIFICATIONS, slices.qualifications, summary),
        RequirementKind.INSURANCE: _collection_requirement(RequirementKind.INSURANCE, slices.insurance, summary),
        RequirementKind.DBS: _single_record_requirement(RequirementKind.DBS, slices.dbs, summary),
    }

    if summary is not None and summary.progress_percentage is not None:
        verification_summary = VerificationSummary(
            overall_status=summary.active_status or derive_overall_status(requirements),
            completion_percentage=float(summary.progress_percentage),
            title=summary.title,
            subtitle=summary.subtitle,
            source=SummarySource.REMOTE,
        )
    else:
        verification_summary = VerificationSummary(
            overall_status=derive_overall_status(requirements),
            completion_percentage=derive_completion_percentage(requirements),
            title=summary.title if summary else None,
            subtitle=summary.subtitle if summary else None,
            source=SummarySource.DERIVED,
        )
    return VerificationState(summary=verification_summary, requirements=requirements)
