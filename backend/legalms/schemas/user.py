import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from legalms.schemas.common import ApiModel, NonEmptyStr

Role = Literal["Admin", "Lawyer", "Client"]


class UserCreate(ApiModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    phone: str | None = None
    role: Role = "Client"


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    phone: str | None = None


class UserUpdate(ApiModel):
    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    phone: str | None = None
    role: Role | None = None
    is_active: bool | None = None


class UserResponse(ApiModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None
    role: str
    is_active: bool
    created_at: datetime


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
