import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from legalms.schemas.common import ApiModel, NonEmptyStr

CaseStatus = Literal["Open", "InProgress", "Closed", "OnHold"]
Priority = Literal["Low", "Medium", "High", "Urgent"]
CaseType = Literal[
    "Civil",
    "Criminal",
    "Corporate",
    "Family",
    "Property",
    "Labor",
    "Tax",
    "PersonalInjury",
    "Immigration",
    "Bankruptcy",
    "ChequeDefault",
    "Other",
]
TimelineEventType = Literal["filing", "hearing", "document", "status_change", "note"]


class CaseCreate(ApiModel):
    title: NonEmptyStr
    description: NonEmptyStr
    priority: Priority
    case_type: CaseType
    client_id: uuid.UUID
    assigned_lawyer_id: uuid.UUID
    court_name: NonEmptyStr
    filing_date: datetime
    next_hearing_date: datetime | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class CaseBulkCreate(ApiModel):
    cases: list[CaseCreate] = Field(min_length=1)


class CaseUpdate(ApiModel):
    title: NonEmptyStr | None = None
    description: NonEmptyStr | None = None
    status: CaseStatus | None = None
    priority: Priority | None = None
    case_type: CaseType | None = None
    court_name: NonEmptyStr | None = None
    filing_date: datetime | None = None
    next_hearing_date: datetime | None = None
    custom_fields: dict[str, Any] | None = None


class CaseStatusUpdate(ApiModel):
    status: CaseStatus


class DocumentCreate(ApiModel):
    file_name: NonEmptyStr
    file_path: NonEmptyStr
    document_type: NonEmptyStr


class TimelineEventCreate(ApiModel):
    title: NonEmptyStr
    description: NonEmptyStr
    type: TimelineEventType = "note"
    date: datetime | None = None


class DocumentResponse(ApiModel):
    id: uuid.UUID
    file_name: str
    file_path: str
    upload_date: datetime
    uploaded_by: uuid.UUID
    document_type: str


class TimelineEventResponse(ApiModel):
    id: uuid.UUID
    date: datetime
    title: str
    description: str
    type: str
    created_by: uuid.UUID


class CaseResponse(ApiModel):
    id: uuid.UUID
    case_number: str
    title: str
    description: str
    status: str
    priority: str
    case_type: str
    client_id: uuid.UUID
    client_name: str
    assigned_lawyer_id: uuid.UUID
    assigned_lawyer_name: str
    court_name: str
    filing_date: datetime
    next_hearing_date: datetime | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    documents: list[DocumentResponse] = Field(default_factory=list)
    timeline: list[TimelineEventResponse] = Field(default_factory=list)


class CaseSummary(ApiModel):
    id: uuid.UUID
    case_number: str
    title: str


class BulkSuccess(ApiModel):
    index: int
    id: uuid.UUID
    case_number: str
    title: str


class BulkFailure(ApiModel):
    index: int
    title: str
    error: str


class BulkResults(ApiModel):
    successful: list[BulkSuccess]
    failed: list[BulkFailure]


class CaseBulkResponse(ApiModel):
    success: bool
    total: int
    created: int
    failed: int
    results: BulkResults


class CaseTypeInfo(ApiModel):
    type: str
    name: str
    description: str
    icon: str
    color: str
