from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_compensation_service, get_ownership_service, get_performance_service
from src.schemas.performance import DebtSummary, PerformanceRecordItem, PerformanceSummary
from src.schemas.riders import RiderItem, SupervisorRidersResponse
from src.schemas.salary import SalaryBreakdown, SalaryOverview
from src.services.compensation_service import CompensationService
from src.services.ownership_service import OwnershipService
from src.services.performance_service import PerformanceService
from src.shared.response import ResponseEnvelope, build_meta, paginate_list
from src.shared.time import resolve_date_range


router = APIRouter(prefix="/supervisors", tags=["supervisors"])


@router.get("/{supervisor_code}/riders")
def supervisor_riders(
    supervisor_code: str,
    fresh: bool = Query(default=False),
    service: OwnershipService = Depends(get_ownership_service),
) -> ResponseEnvelope[SupervisorRidersResponse]:
    owned = service.owned(supervisor_code, fresh=fresh)
    data = SupervisorRidersResponse(
        supervisor_code=supervisor_code.strip(),
        riders=[
            RiderItem(
                code=rider.code,
                name=rider.name,
                region=rider.region,
                supervisor_code=rider.supervisor_code,
                phone=rider.phone,
                join_date=rider.join_date,
                status=rider.status,
                is_active=rider.is_active,
            )
            for rider in owned.records
        ],
        degraded=owned.degraded,
        warnings=owned.warnings,
    )
    meta = build_meta(source="sheets:riders", degraded=owned.degraded, warnings=owned.warnings)
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/{supervisor_code}/performance")
def supervisor_performance(
    supervisor_code: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    top_n: int = Query(default=5, ge=1, le=50),
    fresh: bool = Query(default=False),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[PerformanceSummary]:
    start, end = resolve_date_range(start_date, end_date)
    data = service.summarize(supervisor_code, start, end, top_n=top_n, fresh=fresh)
    meta = build_meta(
        source="sheets:performance",
        start_date=start,
        end_date=end,
        degraded=data.degraded,
        warnings=data.warnings,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/{supervisor_code}/performance/records")
def supervisor_performance_records(
    supervisor_code: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    fresh: bool = Query(default=False),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[List[PerformanceRecordItem]]:
    start, end = resolve_date_range(start_date, end_date)
    record_set = service.performance_of(supervisor_code, start, end, fresh=fresh)
    items, pagination = paginate_list(service.to_record_items(record_set), page, page_size)
    meta = build_meta(
        source="sheets:performance",
        start_date=start,
        end_date=end,
        degraded=record_set.degraded,
        warnings=record_set.warnings,
    )
    return ResponseEnvelope(data=items, pagination=pagination, meta=meta)


@router.get("/{supervisor_code}/debts")
def supervisor_debts(
    supervisor_code: str,
    fresh: bool = Query(default=False),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[DebtSummary]:
    data = service.debts_of(supervisor_code, fresh=fresh)
    meta = build_meta(source="sheets:debts", degraded=data.degraded, warnings=data.warnings)
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/{supervisor_code}/salary")
def supervisor_salary(
    supervisor_code: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    month: Optional[int] = Query(default=None),
    year: Optional[int] = Query(default=None, ge=1901, le=2099),
    fresh: bool = Query(default=False),
    service: CompensationService = Depends(get_compensation_service),
) -> ResponseEnvelope[SalaryBreakdown]:
    start, end = resolve_date_range(start_date, end_date, month=month, year=year)
    data = service.calculate_salary(supervisor_code, start, end, fresh=fresh)
    meta = build_meta(
        source="compensation_engine",
        start_date=start,
        end_date=end,
        degraded=data.degraded,
        warnings=data.warnings,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/{supervisor_code}/salary/overview")
def supervisor_salary_overview(
    supervisor_code: str,
    service: CompensationService = Depends(get_compensation_service),
) -> ResponseEnvelope[SalaryOverview]:
    data = service.salary_overview(supervisor_code)
    degraded = data.current_month.degraded or data.previous_month.degraded
    meta = build_meta(
        source="compensation_engine",
        start_date=data.previous_month.start_date,
        end_date=data.current_month.end_date,
        degraded=degraded,
    )
    return ResponseEnvelope(data=data, meta=meta)
