import uuid
from datetime import datetime
from typing import Literal

from legalms.schemas.case import CaseSummary
from legalms.schemas.common import ApiModel, NonEmptyStr

RelatedTo = Literal["case", "client", "billing", "general"]


class MessageCreate(ApiModel):
    receiver_id: uuid.UUID
    subject: NonEmptyStr
    content: NonEmptyStr
    case_id: uuid.UUID | None = None
    related_to: RelatedTo = "general"


class Participant(ApiModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str


class MessageResponse(ApiModel):
    id: uuid.UUID
    sender: Participant
    receiver: Participant
    subject: str
    content: str
    is_read: bool
    case: CaseSummary | None = None
    related_to: str
    created_at: datetime
