from __future__ import annotations

from pydantic import BaseModel
from pydantic.config import ConfigDict


def to_camel(value: str) -> str:
    head, *rest = value.split("_")
    return head + "".join(word.capitalize() for word in rest)


class BaseSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestSchema(BaseSchema):
    """Inbound bodies: unknown keys are rejected and text is trimmed before length checks."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
