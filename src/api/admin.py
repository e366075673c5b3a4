from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_admin_service, get_compensation_service, get_performance_service
from src.schemas.admin import (
    CacheInvalidateRequest,
    CacheInvalidateResult,
    DebtUploadRequest,
    EquipmentLimitsItem,
    EquipmentLimitsUpdate,
    EquipmentPricingItem,
    EquipmentPricingUpdate,
    MutationResult,
    PerformanceUploadRequest,
    SalaryConfigRequest,
    SalaryConfigResponse,
    UploadResult,
)
from src.schemas.performance import SupervisorPerformanceOverview
from src.schemas.riders import RiderUpsertRequest, SupervisorUpsertRequest
from src.schemas.salary import SalaryBatch
from src.services.admin_service import AdminService
from src.services.compensation_service import CompensationService
from src.services.performance_service import PerformanceService
from src.shared.response import ResponseEnvelope, build_meta
from src.shared.time import resolve_date_range


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/supervisor-performance")
def supervisor_performance_overview(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    fresh: bool = Query(default=False),
    service: PerformanceService = Depends(get_performance_service),
) -> ResponseEnvelope[SupervisorPerformanceOverview]:
    start, end = resolve_date_range(start_date, end_date)
    data = service.supervisor_overview(start, end, fresh=fresh)
    meta = build_meta(
        source="sheets:performance",
        start_date=start,
        end_date=end,
        degraded=data.degraded,
        warnings=data.warnings,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/salaries")
def salaries(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    fresh: bool = Query(default=False),
    service: CompensationService = Depends(get_compensation_service),
) -> ResponseEnvelope[SalaryBatch]:
    start, end = resolve_date_range(start_date, end_date)
    data = service.calculate_all(start, end, fresh=fresh)
    meta = build_meta(source="compensation_engine", start_date=start, end_date=end, degraded=data.degraded)
    return ResponseEnvelope(data=data, meta=meta)


@router.post("/performance/clear")
def clear_performance(
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[MutationResult]:
    return ResponseEnvelope(data=service.clear_performance(), meta=build_meta(source="admin"))


@router.post("/performance/upload")
def upload_performance(
    request: PerformanceUploadRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[UploadResult]:
    data = service.upload_performance(request)
    return ResponseEnvelope(data=data, meta=build_meta(source="admin", warnings=data.warnings))


@router.post("/debts/upload")
def upload_debts(
    request: DebtUploadRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[UploadResult]:
    data = service.upload_debts(request)
    return ResponseEnvelope(data=data, meta=build_meta(source="admin", warnings=data.warnings))


@router.put("/riders/{rider_code}")
def upsert_rider(
    rider_code: str,
    request: RiderUpsertRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[MutationResult]:
    return ResponseEnvelope(data=service.upsert_rider(rider_code, request), meta=build_meta(source="admin"))


@router.delete("/riders/{rider_code}")
def unassign_rider(
    rider_code: str,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[MutationResult]:
    return ResponseEnvelope(data=service.unassign_rider(rider_code), meta=build_meta(source="admin"))


@router.put("/supervisors/{supervisor_code}")
def upsert_supervisor(
    supervisor_code: str,
    request: SupervisorUpsertRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[MutationResult]:
    return ResponseEnvelope(
        data=service.upsert_supervisor(supervisor_code, request),
        meta=build_meta(source="admin"),
    )


@router.delete("/supervisors/{supervisor_code}")
def delete_supervisor(
    supervisor_code: str,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[MutationResult]:
    return ResponseEnvelope(data=service.delete_supervisor(supervisor_code), meta=build_meta(source="admin"))


@router.get("/salary-config/{supervisor_code}")
def get_salary_config(
    supervisor_code: str,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[SalaryConfigResponse]:
    data = service.get_salary_config(supervisor_code)
    return ResponseEnvelope(data=data, meta=build_meta(source="sheets:salary_settings", warnings=data.warnings))


@router.put("/salary-config/{supervisor_code}")
def update_salary_config(
    supervisor_code: str,
    request: SalaryConfigRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[SalaryConfigResponse]:
    data = service.update_salary_config(supervisor_code, request)
    return ResponseEnvelope(data=data, meta=build_meta(source="sheets:salary_settings"))


@router.get("/equipment-limits")
def get_equipment_limits(
    supervisor_code: Optional[str] = Query(default=None),
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[List[EquipmentLimitsItem]]:
    return ResponseEnvelope(
        data=service.get_equipment_limits(supervisor_code),
        meta=build_meta(source="config:equipment_limits"),
    )


@router.put("/equipment-limits")
def update_equipment_limits(
    request: EquipmentLimitsUpdate,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[EquipmentLimitsItem]:
    return ResponseEnvelope(
        data=service.update_equipment_limits(request),
        meta=build_meta(source="config:equipment_limits"),
    )


@router.get("/equipment-pricing")
def get_equipment_pricing(
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[EquipmentPricingItem]:
    return ResponseEnvelope(data=service.get_equipment_pricing(), meta=build_meta(source="config:equipment_pricing"))


@router.put("/equipment-pricing")
def update_equipment_pricing(
    request: EquipmentPricingUpdate,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[EquipmentPricingItem]:
    return ResponseEnvelope(
        data=service.update_equipment_pricing(request),
        meta=build_meta(source="config:equipment_pricing"),
    )


@router.post("/cache/invalidate")
def invalidate_cache(
    request: CacheInvalidateRequest,
    service: AdminService = Depends(get_admin_service),
) -> ResponseEnvelope[CacheInvalidateResult]:
    return ResponseEnvelope(data=service.invalidate_cache(request), meta=build_meta(source="cache"))
