from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from src.shared.base import BaseSchema, RequestSchema


class RiderItem(BaseSchema):
    code: str
    name: str
    region: str
    supervisor_code: str
    phone: str
    join_date: Optional[str] = None
    status: str
    is_active: bool


class SupervisorRidersResponse(BaseSchema):
    supervisor_code: str
    riders: List[RiderItem]
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class RiderUpsertRequest(RequestSchema):
    name: str = Field(min_length=1)
    region: str = ""
    supervisor_code: str = ""
    supervisor_name: str = ""
    phone: str = ""
    join_date: Optional[str] = None
    status: str = ""


class SupervisorUpsertRequest(RequestSchema):
    name: str = Field(min_length=1)
    region: str = ""
    email: str = ""
    target: Optional[int] = Field(default=None, ge=0)
