"""Shared schema utilities."""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StatusMessage(BaseModel):
    message: str


class CountResponse(BaseModel):
    count: int


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
