import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field

from legalms.schemas.case import CaseSummary
from legalms.schemas.common import ApiModel, NonEmptyStr

InvoiceStatus = Literal["Draft", "Sent", "Paid", "Overdue", "Cancelled"]


class TimeEntryCreate(ApiModel):
    case_id: uuid.UUID
    date: datetime
    hours: float = Field(ge=0)
    description: NonEmptyStr
    hourly_rate: float = Field(ge=0)


class TimeEntryResponse(ApiModel):
    id: uuid.UUID
    case: CaseSummary
    lawyer_id: uuid.UUID
    lawyer_name: str
    date: datetime
    hours: float
    description: str
    hourly_rate: float
    amount: float


class InvoiceItemCreate(ApiModel):
    case_id: uuid.UUID
    description: NonEmptyStr
    quantity: float = Field(ge=0)
    rate: float = Field(ge=0)


class InvoiceCreate(ApiModel):
    client_id: uuid.UUID
    issue_date: datetime
    due_date: datetime
    items: list[InvoiceItemCreate] = Field(min_length=1)


class InvoiceStatusUpdate(ApiModel):
    status: InvoiceStatus


class InvoiceItemResponse(ApiModel):
    id: uuid.UUID
    case_id: uuid.UUID
    description: str
    quantity: float
    rate: float
    amount: float


class InvoiceResponse(ApiModel):
    id: uuid.UUID
    invoice_number: str
    client_id: uuid.UUID
    client_name: str
    issue_date: datetime
    due_date: datetime
    total_amount: float
    status: str
    items: list[InvoiceItemResponse]
    case_ids: list[uuid.UUID]
    created_by: uuid.UUID
    created_at: datetime
