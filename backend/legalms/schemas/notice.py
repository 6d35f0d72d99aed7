import uuid
from datetime import datetime
from typing import Literal

from legalms.schemas.case import CaseSummary, Priority
from legalms.schemas.common import ApiModel, NonEmptyStr

NoticeType = Literal["Legal", "Court", "Administrative", "Other"]


class NoticeCreate(ApiModel):
    title: NonEmptyStr
    description: NonEmptyStr
    notice_type: NoticeType = "Legal"
    case_id: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    priority: Priority = "Medium"


class NoticeResponse(ApiModel):
    id: uuid.UUID
    title: str
    description: str
    notice_type: str
    case: CaseSummary | None = None
    client_id: uuid.UUID | None = None
    client_name: str | None = None
    issue_date: datetime
    due_date: datetime | None = None
    status: str
    priority: str
    created_by: uuid.UUID
    created_by_name: str
    created_at: datetime
