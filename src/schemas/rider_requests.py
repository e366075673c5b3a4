from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from src.shared.base import BaseSchema, RequestSchema


class RiderRequestItem(BaseSchema):
    request_id: int
    kind: str
    supervisor_code: str
    supervisor_name: str = ""
    rider_code: str
    rider_name: str = ""
    reason: Optional[str] = None
    status: str
    request_date: Optional[str] = None
    approval_date: Optional[str] = None
    approved_by: Optional[str] = None


class RiderRequestList(BaseSchema):
    requests: List[RiderRequestItem]
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class AssignmentRequestCreate(RequestSchema):
    rider_code: str = Field(min_length=1)
    rider_name: str = Field(min_length=1)


class TerminationRequestCreate(RequestSchema):
    rider_code: str = Field(min_length=1)
    reason: str = Field(min_length=1)


class RequestDecision(RequestSchema):
    action: Literal["approve", "reject"]
    # Termination only: hand the rider to this supervisor instead of unassigning.
    new_supervisor_code: Optional[str] = None
    decided_by: str = "admin"


class RequestDecisionResult(BaseSchema):
    request: RiderRequestItem
    invalidated: int = 0
    message: str = ""
