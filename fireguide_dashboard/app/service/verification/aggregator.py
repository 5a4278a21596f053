# Verification aggregator: one composite view over four credential resources
import logging
from typing import Optional, Dict, Any, Awaitable, Callable, Tuple

from fireguide_dashboard.app.models.verification import RequirementKind, VerificationState
from fireguide_dashboard.app.observability import tracer, slice_fetch_failures_counter, evidence_uploads_counter
from fireguide_dashboard.app.service.concurrency import settle_all
from fireguide_dashboard.app.service.exceptions import (
    BaseDashboardError,
    InvalidFileError,
    MissingRecordError,
    NotAuthenticatedError,
    RemoteCallError,
    UnsupportedRequirementError,
)
from fireguide_dashboard.app.service.interfaces.fireguide_api import AbstractFireGuideApi
from fireguide_dashboard.app.service.interfaces.session_store import AbstractSessionStore
from fireguide_dashboard.app.service.interfaces.user_notifier import AbstractUserNotifier
from fireguide_dashboard.app.service.verification.derivation import VerificationSlices, build_state, latest_record
from fireguide_dashboard.app.service.verification.uploads import EvidenceFile, build_upload_request, classify_file
from fireguide_dashboard.infrastructure.fireguide_api.responses import RemoteResponse
from fireguide_dashboard.infrastructure.fireguide_api.schemas import UploadRequest

logger = logging.getLogger(__name__)

IDENTITY_SLICE = "identity"
DBS_SLICE = "dbs"
QUALIFICATIONS_SLICE = "qualifications"
INSURANCE_SLICE = "insurance"
SUMMARY_SLICE = "summary"
ALL_SLICES = (IDENTITY_SLICE, DBS_SLICE, QUALIFICATIONS_SLICE, INSURANCE_SLICE, SUMMARY_SLICE)

# Field that carries the file in each update endpoint's body.
UPLOAD_FILE_FIELDS: Dict[RequirementKind, str] = {
    RequirementKind.IDENTITY: "file",
    RequirementKind.DBS: "file",
    RequirementKind.QUALIFICATIONS: "document",
}

UPLOAD_SUCCESS_MESSAGES: Dict[RequirementKind, str] = {
    RequirementKind.IDENTITY: "Identity document updated successfully",
    RequirementKind.DBS: "DBS certificate updated successfully",
    RequirementKind.QUALIFICATIONS: "Qualification evidence uploaded successfully",
}


class VerificationAggregator:
    """
    Holds the four verification slices plus the remote summary and derives
    the composite VerificationState from them.

    Reads fan out concurrently and a failing read only empties its own
    slice. Uploads always propagate failures and never touch cached state;
    on success the affected slice is reloaded from the server.
    """

    def __init__(
        self,
        api: AbstractFireGuideApi,
        session_store: AbstractSessionStore,
        notifier: AbstractUserNotifier,
    ):
        self.api = api
        self.session_store = session_store
        self.notifier = notifier
        self._slices = VerificationSlices()

    @property
    def slices(self) -> VerificationSlices:
        return self._slices

    @property
    def state(self) -> VerificationState:
        return build_state(self._slices)

    def _reject(self, error: BaseDashboardError) -> BaseDashboardError:
        logger.warning(f"Verification request rejected: {error}")
        self.notifier.error(str(error))
        return error

    def _require_token(self) -> str:
        token = self.session_store.get_session_token()
        if not token:
            raise self._reject(NotAuthenticatedError("session token"))
        return token

    def _require_professional_id(self) -> int:
        professional_id = self.session_store.get_professional_id()
        if professional_id is None:
            raise self._reject(NotAuthenticatedError("professional id"))
        return professional_id

    # --- Slice loaders: fetch -> value stored in the slice ---

    async def _load_identity(self, token: str):
        return latest_record(await self.api.fetch_identity_records(token))

    async def _load_dbs(self, token: str):
        return latest_record(await self.api.fetch_dbs_records(token))

    async def _load_qualifications(self, token: str):
        return await self.api.fetch_qualification_evidence(token)

    async def _load_insurance(self, token: str):
        return await self.api.fetch_insurance_coverage(token)

    async def _load_summary(self, token: str):
        return await self.api.fetch_verification_summary(token)

    def _loaders(self) -> Dict[str, Callable[[str], Awaitable[Any]]]:
        return {
            IDENTITY_SLICE: self._load_identity,
            DBS_SLICE: self._load_dbs,
            QUALIFICATIONS_SLICE: self._load_qualifications,
            INSURANCE_SLICE: self._load_insurance,
            SUMMARY_SLICE: self._load_summary,
        }

    @staticmethod
    def _empty_value(slice_name: str):
        if slice_name in (QUALIFICATIONS_SLICE, INSURANCE_SLICE):
            return []
        return None

    async def _refresh_slices(self, slice_names: Tuple[str, ...]) -> VerificationState:
        token = self._require_token()
        loaders = self._loaders()
        results = await settle_all([loaders[name](token) for name in slice_names])

        updates: Dict[str, Any] = {}
        for name, result in zip(slice_names, results):
            if result.ok:
                updates[name] = result.value
                continue
            # Absorbed: the slice reads as empty, siblings are unaffected.
            logger.warning(f"Verification slice '{name}' failed to load and is shown as empty: {result.error}")
            slice_fetch_failures_counter.add(1, {"slice": name})
            updates[name] = self._empty_value(name)

        # Last write wins: assign only after every read of this round settled.
        self._slices = self._slices.model_copy(update=updates)
        return self.state

    async def refresh_all(self) -> VerificationState:
        with tracer.start_as_current_span("verification.refresh_all"):
            logger.info("Refreshing all verification slices.")
            return await self._refresh_slices(ALL_SLICES)

    async def refresh_identity(self) -> VerificationState:
        return await self._refresh_slices((IDENTITY_SLICE,))

    async def refresh_dbs(self) -> VerificationState:
        return await self._refresh_slices((DBS_SLICE,))

    async def refresh_qualifications(self) -> VerificationState:
        return await self._refresh_slices((QUALIFICATIONS_SLICE,))

    async def refresh_insurance(self) -> VerificationState:
        return await self._refresh_slices((INSURANCE_SLICE,))

    async def refresh_summary(self) -> VerificationState:
        return await self._refresh_slices((SUMMARY_SLICE,))

    async def refresh_requirement(self, kind: RequirementKind) -> VerificationState:
        refreshers = {
            RequirementKind.IDENTITY: self.refresh_identity,
            RequirementKind.DBS: self.refresh_dbs,
            RequirementKind.QUALIFICATIONS: self.refresh_qualifications,
            RequirementKind.INSURANCE: self.refresh_insurance,
        }
        return await refreshers[RequirementKind(kind)]()

    # --- Evidence upload ---

    def _upload_target(self, kind: RequirementKind, target_id: Optional[int]) -> Optional[int]:
        if kind == RequirementKind.IDENTITY:
            record = self._slices.identity
        elif kind == RequirementKind.DBS:
            record = self._slices.dbs
        else:
            # Qualifications: no id creates a new evidence item.
            return target_id
        if record is None:
            raise MissingRecordError(kind.value)
        return target_id if target_id is not None else record.id

    async def _send_upload(self, kind: RequirementKind, upload: UploadRequest) -> RemoteResponse:
        if kind == RequirementKind.IDENTITY:
            return await self.api.update_identity_document(upload)
        if kind == RequirementKind.DBS:
            return await self.api.update_dbs_document(upload)
        return await self.api.store_qualification_evidence(upload)

    async def submit_evidence(
        self,
        kind: RequirementKind,
        file: EvidenceFile,
        target_id: Optional[int] = None,
    ) -> VerificationState:
        """
        Uploads a document for identity, DBS or qualifications.

        Every precondition is checked before the network is touched:
        credentials (NotAuthenticatedError), requirement
        (UnsupportedRequirementError), file gate (InvalidFileError) and,
        for identity/DBS, an existing record (MissingRecordError). Every
        rejection is reported to the notifier before it propagates.
        """
        token = self._require_token()
        professional_id = self._require_professional_id()
        try:
            kind = RequirementKind(kind)
        except ValueError:
            raise self._reject(UnsupportedRequirementError(str(kind))) from None
        if kind not in UPLOAD_FILE_FIELDS:
            raise self._reject(UnsupportedRequirementError(kind.value))

        try:
            classified = classify_file(file)
            record_id = self._upload_target(kind, target_id)
        except (InvalidFileError, MissingRecordError) as e:
            self._reject(e)
            raise
        upload = build_upload_request(
            classified,
            api_token=token,
            professional_id=professional_id,
            file_field=UPLOAD_FILE_FIELDS[kind],
            record_id=record_id,
        )

        with tracer.start_as_current_span("verification.submit_evidence") as span:
            span.set_attribute("requirement", kind.value)
            span.set_attribute("encoding", upload.encoding)
            logger.info(
                f"Submitting {kind.value} evidence '{file.filename}' ({upload.encoding}, "
                f"record_id={record_id})."
            )
            try:
                await self._send_upload(kind, upload)
            except RemoteCallError as e:
                evidence_uploads_counter.add(1, {"requirement": kind.value, "encoding": upload.encoding, "outcome": "failure"})
                logger.error(f"Upload of {kind.value} evidence failed: {e.message}")
                self.notifier.error(e.message)
                raise
            evidence_uploads_counter.add(1, {"requirement": kind.value, "encoding": upload.encoding, "outcome": "success"})

        self.notifier.success(UPLOAD_SUCCESS_MESSAGES[kind])
        # Reload server truth for the slice; the summary moves with it.
        slice_name = {
            RequirementKind.IDENTITY: IDENTITY_SLICE,
            RequirementKind.DBS: DBS_SLICE,
            RequirementKind.QUALIFICATIONS: QUALIFICATIONS_SLICE,
        }[kind]
        return await self._refresh_slices((slice_name, SUMMARY_SLICE))

    def discard(self) -> None:
        self._slices = VerificationSlices()
