import uuid
from datetime import datetime

from pydantic import EmailStr

from legalms.schemas.common import ApiModel, NonEmptyStr


class ClientCreate(ApiModel):
    name: NonEmptyStr
    email: EmailStr
    phone: NonEmptyStr
    address: NonEmptyStr
    company_name: str | None = None
    assigned_lawyer_id: uuid.UUID | None = None


class ClientUpdate(ApiModel):
    name: NonEmptyStr | None = None
    email: EmailStr | None = None
    phone: NonEmptyStr | None = None
    address: NonEmptyStr | None = None
    company_name: str | None = None
    assigned_lawyer_id: uuid.UUID | None = None


class ClientResponse(ApiModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str
    address: str
    company_name: str | None = None
    created_date: datetime
    assigned_lawyer_id: uuid.UUID | None = None
    assigned_lawyer_name: str | None = None
