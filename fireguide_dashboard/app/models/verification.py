import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field


class RequirementKind(str, Enum):
    IDENTITY = "identity"
    QUALIFICATIONS = "qualifications"
    INSURANCE = "insurance"
    DBS = "dbs"

class RequirementStatus(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"

class SummarySource(str, Enum):
    REMOTE = "remote" # progress taken from the verification_summary endpoint
    DERIVED = "derived" # computed from the four slices after the summary call failed


class Document(BaseModel):
    id: int # id in the owning remote record, targets updates
    display_name: str
    uploaded_at: Optional[datetime.datetime] = None
    location_reference: Optional[str] = None
    status: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict) # insurance: price, provider_id, expire_date

class VerificationRequirement(BaseModel):
    kind: RequirementKind
    status: RequirementStatus = RequirementStatus.NOT_SUBMITTED
    verified_or_updated_at: Optional[datetime.datetime] = None
    evidence: List[Document] = Field(default_factory=list) # always empty for identity/dbs
    details: Dict[str, Any] = Field(default_factory=dict)

class VerificationSummary(BaseModel):
    overall_status: str
    completion_percentage: float
    title: Optional[str] = None
    subtitle: Optional[str] = None
    source: SummarySource = SummarySource.DERIVED

class VerificationState(BaseModel):
    summary: VerificationSummary
    requirements: Dict[RequirementKind, VerificationRequirement]

    def requirement(self, kind: RequirementKind) -> VerificationRequirement:
        return self.requirements[RequirementKind(kind)]
