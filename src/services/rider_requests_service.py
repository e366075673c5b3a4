from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple

from src.core.errors import BadRequestError, NotFoundError, UpstreamError
from src.models.records import (
    RiderRecord,
    RiderRequestKind,
    RiderRequestRecord,
    RiderRequestStatus,
    SupervisorRecord,
)
from src.repositories.rider_requests_repository import RiderRequestsRepository, find_pending
from src.repositories.riders_repository import RidersRepository
from src.repositories.supervisors_repository import SupervisorsRepository
from src.schemas.rider_requests import (
    AssignmentRequestCreate,
    RequestDecision,
    RequestDecisionResult,
    RiderRequestItem,
    RiderRequestList,
    TerminationRequestCreate,
)
from src.services.cache_invalidation_service import CacheInvalidationService

logger = logging.getLogger(__name__)


def _to_item(record: RiderRequestRecord) -> RiderRequestItem:
    return RiderRequestItem(
        request_id=record.request_id,
        kind=record.kind.value,
        supervisor_code=record.supervisor_code,
        supervisor_name=record.supervisor_name,
        rider_code=record.rider_code,
        rider_name=record.rider_name,
        reason=record.reason,
        status=record.status,
        request_date=record.request_date,
        approval_date=record.approval_date,
        approved_by=record.approved_by,
    )


class RiderRequestsService:
    """Supervisor requests to take on or release a rider, decided by an admin.

    An approval changes the rider's owner first and only then records the
    decision, so a failed rider write leaves the request pending.
    """

    def __init__(
        self,
        requests_repository: RiderRequestsRepository,
        riders_repository: RidersRepository,
        supervisors_repository: SupervisorsRepository,
        coordinator: CacheInvalidationService,
    ) -> None:
        self.requests_repository = requests_repository
        self.riders_repository = riders_repository
        self.supervisors_repository = supervisors_repository
        self.coordinator = coordinator

    def list_requests(
        self,
        kind: RiderRequestKind,
        supervisor_code: Optional[str] = None,
        status: Optional[str] = None,
    ) -> RiderRequestList:
        result = self.requests_repository.list_requests(kind)
        records: List[RiderRequestRecord] = list(result.records)
        if supervisor_code:
            records = [record for record in records if record.supervisor_code == supervisor_code.strip()]
        if status:
            records = [record for record in records if record.status == status]
        return RiderRequestList(
            requests=[_to_item(record) for record in records],
            degraded=result.degraded,
            warnings=result.warnings,
        )

    def _require_supervisor(self, code: str) -> SupervisorRecord:
        supervisor = self.supervisors_repository.get_supervisor(code, fresh=True)
        if supervisor is None:
            raise NotFoundError(f"Supervisor {code} not found")
        return supervisor

    def _find_rider(self, code: str) -> Optional[RiderRecord]:
        riders = self.riders_repository.list_riders(fresh=True)
        if riders.degraded:
            raise UpstreamError("Riders sheet could not be read")
        return next((rider for rider in riders.records if rider.code == code), None)

    def _reject_duplicate(self, kind: RiderRequestKind, supervisor_code: str, rider_code: str) -> None:
        existing = self.requests_repository.list_requests(kind)
        if existing.degraded:
            raise UpstreamError(f"{kind.value.capitalize()} requests could not be read")
        if find_pending(existing.records, supervisor_code, rider_code) is not None:
            raise BadRequestError(f"A pending {kind.value} request already exists for rider {rider_code}")

    def create_assignment(self, supervisor_code: str, request: AssignmentRequestCreate) -> RiderRequestItem:
        code = supervisor_code.strip()
        supervisor = self._require_supervisor(code)
        rider_code = request.rider_code.strip()
        rider = self._find_rider(rider_code)
        if rider is not None and rider.supervisor_code:
            raise BadRequestError(f"Rider {rider_code} is already assigned to supervisor {rider.supervisor_code}")
        self._reject_duplicate(RiderRequestKind.ASSIGNMENT, code, rider_code)
        record = self.requests_repository.add_request(
            RiderRequestRecord(
                request_id=0,
                kind=RiderRequestKind.ASSIGNMENT,
                supervisor_code=code,
                supervisor_name=supervisor.name,
                rider_code=rider_code,
                rider_name=request.rider_name.strip(),
                request_date=date.today().isoformat(),
            )
        )
        logger.info("Assignment request %s: %s asks for rider %s", record.request_id, code, rider_code)
        return _to_item(record)

    def create_termination(self, supervisor_code: str, request: TerminationRequestCreate) -> RiderRequestItem:
        code = supervisor_code.strip()
        supervisor = self._require_supervisor(code)
        rider_code = request.rider_code.strip()
        rider = self._find_rider(rider_code)
        if rider is None or rider.supervisor_code != code:
            raise BadRequestError(f"Rider {rider_code} is not assigned to supervisor {code}")
        self._reject_duplicate(RiderRequestKind.TERMINATION, code, rider_code)
        record = self.requests_repository.add_request(
            RiderRequestRecord(
                request_id=0,
                kind=RiderRequestKind.TERMINATION,
                supervisor_code=code,
                supervisor_name=supervisor.name,
                rider_code=rider_code,
                rider_name=rider.name,
                reason=request.reason.strip(),
                request_date=date.today().isoformat(),
            )
        )
        logger.info("Termination request %s: %s releases rider %s", record.request_id, code, rider_code)
        return _to_item(record)

    def decide(self, kind: RiderRequestKind, request_id: int, decision: RequestDecision) -> RequestDecisionResult:
        record = self.requests_repository.get_request(kind, request_id)
        if not record.is_pending:
            raise BadRequestError(f"Request {request_id} was already {record.status}")
        invalidated = 0
        if decision.action == "approve":
            if kind is RiderRequestKind.ASSIGNMENT:
                invalidated, message = self._approve_assignment(record)
            else:
                invalidated, message = self._approve_termination(record, decision.new_supervisor_code)
            status = RiderRequestStatus.APPROVED
        else:
            message = "Request rejected"
            status = RiderRequestStatus.REJECTED
        decided = record.model_copy(
            update={
                "status": status.value,
                "approval_date": date.today().isoformat(),
                "approved_by": decision.decided_by.strip() or "admin",
            }
        )
        self.requests_repository.save_request(decided)
        logger.info("%s request %s %s", kind.value.capitalize(), request_id, status.value)
        return RequestDecisionResult(request=_to_item(decided), invalidated=invalidated, message=message)

    def _approve_assignment(self, record: RiderRequestRecord) -> Tuple[int, str]:
        rider = self._find_rider(record.rider_code)
        if rider is None:
            rider = RiderRecord(
                code=record.rider_code,
                name=record.rider_name,
                supervisor_code=record.supervisor_code,
                supervisor_name=record.supervisor_name,
                join_date=date.today().isoformat(),
                status="active",
            )
        else:
            rider = rider.model_copy(
                update={"supervisor_code": record.supervisor_code, "supervisor_name": record.supervisor_name}
            )
        created, previous = self.riders_repository.upsert_rider(rider)
        invalidated = self.coordinator.rider_changed(previous, record.supervisor_code)
        if created:
            return invalidated, f"Rider {record.rider_code} added to supervisor {record.supervisor_code}"
        return invalidated, f"Rider {record.rider_code} assigned to supervisor {record.supervisor_code}"

    def _approve_termination(self, record: RiderRequestRecord, new_supervisor_code: Optional[str]) -> Tuple[int, str]:
        target_code = (new_supervisor_code or "").strip()
        if not target_code:
            previous = self.riders_repository.unassign_rider(record.rider_code)
            invalidated = self.coordinator.rider_changed(previous or record.supervisor_code, None)
            return invalidated, f"Rider {record.rider_code} unassigned"
        target = self._require_supervisor(target_code)
        rider = self._find_rider(record.rider_code)
        if rider is None:
            raise NotFoundError(f"Rider {record.rider_code} not found")
        _, previous = self.riders_repository.upsert_rider(
            rider.model_copy(update={"supervisor_code": target.code, "supervisor_name": target.name})
        )
        invalidated = self.coordinator.rider_changed(previous or record.supervisor_code, target.code)
        return invalidated, f"Rider {record.rider_code} moved to supervisor {target.code}"
