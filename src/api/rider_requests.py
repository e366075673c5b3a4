from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_rider_requests_service
from src.models.records import RiderRequestKind
from src.schemas.rider_requests import (
    AssignmentRequestCreate,
    RequestDecision,
    RequestDecisionResult,
    RiderRequestItem,
    RiderRequestList,
    TerminationRequestCreate,
)
from src.services.rider_requests_service import RiderRequestsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(tags=["rider-requests"])


def _source(kind: RiderRequestKind) -> str:
    return f"sheets:{kind.value}_requests"


@router.get("/supervisors/{supervisor_code}/requests/{kind}")
def supervisor_requests(
    supervisor_code: str,
    kind: RiderRequestKind,
    status: Optional[str] = Query(default=None),
    service: RiderRequestsService = Depends(get_rider_requests_service),
) -> ResponseEnvelope[RiderRequestList]:
    data = service.list_requests(kind, supervisor_code=supervisor_code, status=status)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source=_source(kind), degraded=data.degraded, warnings=data.warnings),
    )


@router.post("/supervisors/{supervisor_code}/requests/assignment")
def create_assignment_request(
    supervisor_code: str,
    request: AssignmentRequestCreate,
    service: RiderRequestsService = Depends(get_rider_requests_service),
) -> ResponseEnvelope[RiderRequestItem]:
    data = service.create_assignment(supervisor_code, request)
    return ResponseEnvelope(data=data, meta=build_meta(source=_source(RiderRequestKind.ASSIGNMENT)))


@router.post("/supervisors/{supervisor_code}/requests/termination")
def create_termination_request(
    supervisor_code: str,
    request: TerminationRequestCreate,
    service: RiderRequestsService = Depends(get_rider_requests_service),
) -> ResponseEnvelope[RiderRequestItem]:
    data = service.create_termination(supervisor_code, request)
    return ResponseEnvelope(data=data, meta=build_meta(source=_source(RiderRequestKind.TERMINATION)))


@router.get("/admin/requests/{kind}")
def admin_requests(
    kind: RiderRequestKind,
    status: Optional[str] = Query(default=None),
    supervisor_code: Optional[str] = Query(default=None),
    service: RiderRequestsService = Depends(get_rider_requests_service),
) -> ResponseEnvelope[RiderRequestList]:
    data = service.list_requests(kind, supervisor_code=supervisor_code, status=status)
    return ResponseEnvelope(
        data=data,
        meta=build_meta(source=_source(kind), degraded=data.degraded, warnings=data.warnings),
    )


@router.put("/admin/requests/{kind}/{request_id}")
def decide_request(
    kind: RiderRequestKind,
    request_id: int,
    decision: RequestDecision,
    service: RiderRequestsService = Depends(get_rider_requests_service),
) -> ResponseEnvelope[RequestDecisionResult]:
    data = service.decide(kind, request_id, decision)
    return ResponseEnvelope(data=data, meta=build_meta(source=_source(kind)))
