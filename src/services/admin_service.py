from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from src.analytics.commission_formula import FormulaError, compile_formula
from src.core.errors import BadRequestError, ConfigurationError, NotFoundError
from src.models.compensation import (
    DEFAULT_HOUR_TIERS,
    EQUIPMENT_KINDS,
    LEGACY_EQUIPMENT_KEYS,
    CompensationModel,
    EquipmentLimits,
    EquipmentPricing,
    dump_hour_tiers,
    parse_hour_tiers,
    resolve_model_tag,
)
from src.models.records import RiderRecord, SalaryConfigRecord, SupervisorRecord
from src.repositories.compensation_config_repository import CompensationConfigRepository
from src.repositories.performance_repository import DebtsRepository, PerformanceRepository
from src.repositories.riders_repository import RidersRepository
from src.repositories.supervisors_repository import SupervisorsRepository
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
from src.schemas.riders import RiderUpsertRequest, SupervisorUpsertRequest
from src.services.cache_invalidation_service import CacheInvalidationService
from src.services.compensation_service import CompensationService
from src.shared.dates import normalize_date
from src.shared.money import ZERO, to_decimal, to_sheet_number

HUNDRED = Decimal("100")

logger = logging.getLogger(__name__)


def _validated_config_values(raw: Dict[str, Any], field: str, whole: bool) -> Dict[str, Any]:
    """Reject unknown kinds and negative or non-numeric values; nothing is coerced."""
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        kind = LEGACY_EQUIPMENT_KEYS.get(key, key)
        if kind not in EQUIPMENT_KINDS:
            raise ConfigurationError(f"Unknown equipment kind '{key}'", field=f"{field}.{key}")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"Value for '{key}' must be a number", field=f"{field}.{key}")
        number = to_decimal(value, default=None)
        if number is None or number < 0:
            raise ConfigurationError(f"Value for '{key}' must be zero or greater", field=f"{field}.{key}")
        if whole and number != number.to_integral_value():
            raise ConfigurationError(f"Quantity for '{key}' must be a whole number", field=f"{field}.{key}")
        values[kind] = int(number) if whole else number
    return values


def _validated_hour_tiers(request: SalaryConfigRequest, formula: Optional[str]) -> Optional[str]:
    """Hour tiers as stored in the formula column; blank keeps the default tiers."""
    if request.hour_tiers:
        for tier in request.hour_tiers:
            if tier.max_hours < tier.min_hours:
                raise ConfigurationError("Hour tier maxHours is below minHours", field="hourTiers")
        return dump_hour_tiers(tuple(request.hour_tiers))
    if formula is None:
        return None
    try:
        parse_hour_tiers(formula)
    except ValueError as exc:
        raise ConfigurationError(f"Hour tiers are malformed: {exc}", field="commissionFormula") from exc
    return formula


class AdminService:
    """Administrative mutations; each one finishes by invalidating affected cache entries."""

    def __init__(
        self,
        riders_repository: RidersRepository,
        supervisors_repository: SupervisorsRepository,
        performance_repository: PerformanceRepository,
        debts_repository: DebtsRepository,
        config_repository: CompensationConfigRepository,
        compensation_service: CompensationService,
        coordinator: CacheInvalidationService,
    ) -> None:
        self.riders_repository = riders_repository
        self.supervisors_repository = supervisors_repository
        self.performance_repository = performance_repository
        self.debts_repository = debts_repository
        self.config_repository = config_repository
        self.compensation_service = compensation_service
        self.coordinator = coordinator

    def clear_performance(self) -> MutationResult:
        self.performance_repository.clear_performance()
        invalidated = self.coordinator.performance_changed()
        logger.info("Performance data cleared")
        return MutationResult(code="performance", invalidated=invalidated, message="Performance data cleared")

    def upload_performance(self, request: PerformanceUploadRequest) -> UploadResult:
        rows: List[List[Any]] = []
        warnings: List[str] = []
        override = request.override_date.isoformat() if request.override_date else None
        for index, item in enumerate(request.rows, start=1):
            record_date = override or normalize_date(item.record_date)
            if record_date is None:
                warnings.append(f"Row {index}: unreadable date '{item.record_date}'")
                continue
            rows.append(
                [
                    record_date,
                    item.rider_code.strip(),
                    item.hours,
                    item.break_time,
                    item.delay,
                    item.absence,
                    item.orders,
                    item.acceptance,
                    to_sheet_number(item.wallet),
                ]
            )
        if not rows:
            raise BadRequestError("No performance rows with a readable date")
        written = self.performance_repository.append_performance(rows)
        invalidated = self.coordinator.performance_changed()
        logger.info("Uploaded %s performance rows (%s rejected)", written, len(warnings))
        return UploadResult(
            rows_written=written,
            rows_rejected=len(request.rows) - len(rows),
            invalidated=invalidated,
            warnings=warnings,
        )

    def upload_debts(self, request: DebtUploadRequest) -> UploadResult:
        rows: List[List[Any]] = []
        warnings: List[str] = []
        for index, item in enumerate(request.rows, start=1):
            on_date = ""
            if item.on_date and item.on_date.strip():
                on_date = normalize_date(item.on_date) or ""
                if not on_date:
                    warnings.append(f"Row {index}: unreadable date '{item.on_date}' stored blank")
            rows.append([item.rider_code.strip(), to_sheet_number(item.amount), on_date, item.notes or ""])
        if request.replace:
            written = self.debts_repository.replace_debts(rows)
        else:
            written = self.debts_repository.append_debts(rows)
        invalidated = self.coordinator.debts_changed()
        return UploadResult(rows_written=written, rows_rejected=0, invalidated=invalidated, warnings=warnings)

    def upsert_rider(self, code: str, request: RiderUpsertRequest) -> MutationResult:
        code = code.strip()
        join_date = None
        if request.join_date:
            join_date = normalize_date(request.join_date) or request.join_date.strip()
        rider = RiderRecord(
            code=code,
            name=request.name.strip(),
            region=request.region.strip(),
            supervisor_code=request.supervisor_code.strip(),
            supervisor_name=request.supervisor_name.strip(),
            phone=request.phone.strip(),
            join_date=join_date,
            status=request.status.strip(),
        )
        created, previous = self.riders_repository.upsert_rider(rider)
        invalidated = self.coordinator.rider_changed(previous, rider.supervisor_code or None)
        return MutationResult(code=code, created=created, invalidated=invalidated)

    def unassign_rider(self, code: str) -> MutationResult:
        code = code.strip()
        previous = self.riders_repository.unassign_rider(code)
        invalidated = self.coordinator.rider_changed(previous, None)
        return MutationResult(code=code, invalidated=invalidated, message="Rider unassigned")

    def upsert_supervisor(self, code: str, request: SupervisorUpsertRequest) -> MutationResult:
        code = code.strip()
        created = self.supervisors_repository.upsert_supervisor(
            SupervisorRecord(
                code=code,
                name=request.name.strip(),
                region=request.region.strip(),
                email=request.email.strip(),
                target=request.target,
            )
        )
        invalidated = self.coordinator.supervisor_changed(code)
        return MutationResult(code=code, created=created, invalidated=invalidated)

    def delete_supervisor(self, code: str) -> MutationResult:
        code = code.strip()
        self.supervisors_repository.delete_supervisor(code)
        invalidated = self.coordinator.supervisor_changed(code)
        return MutationResult(code=code, invalidated=invalidated, message="Supervisor deleted")

    def _require_supervisor(self, code: str) -> SupervisorRecord:
        supervisor = self.supervisors_repository.get_supervisor(code)
        if supervisor is None:
            raise NotFoundError(f"Supervisor {code} not found")
        return supervisor

    def get_salary_config(self, code: str) -> SalaryConfigResponse:
        code = code.strip()
        supervisor = self._require_supervisor(code)
        config, warnings = self.compensation_service.resolve_model(code, supervisor)
        hour_tiers = None
        formula = config.commission_formula
        if config.model == CompensationModel.HOURLY_TIERS:
            try:
                hour_tiers = list(parse_hour_tiers(formula))
            except ValueError:
                warnings.append(f"Hour tiers for {code} are malformed; default tiers apply")
                hour_tiers = list(DEFAULT_HOUR_TIERS)
            formula = None
        shares = config.model == CompensationModel.RECEIPTS_SHARE
        return SalaryConfigResponse(
            supervisor_code=code,
            model=config.model.value,
            salary_type=config.raw_tag,
            salary_amount=config.amount,
            commission_formula=formula,
            hour_tiers=hour_tiers,
            receipts_percentage=config.receipts_percentage if shares else None,
            supervisor_percentage=config.supervisor_percentage if shares else None,
            source=config.source,
            warnings=warnings,
        )

    def update_salary_config(self, code: str, request: SalaryConfigRequest) -> SalaryConfigResponse:
        code = code.strip()
        self._require_supervisor(code)
        model = resolve_model_tag(request.salary_type)
        if model is None:
            raise ConfigurationError(f"Unknown compensation model '{request.salary_type}'", field="salaryType")
        amount = request.salary_amount
        if amount is not None and amount < 0:
            raise ConfigurationError("Salary amount must be zero or greater", field="salaryAmount")
        if model in (CompensationModel.FIXED, CompensationModel.CUSTOM) and amount is None:
            raise ConfigurationError(f"Model '{model.value}' requires a salary amount", field="salaryAmount")
        formula = (request.commission_formula or "").strip() or None
        if model == CompensationModel.COMMISSION:
            try:
                compile_formula(formula)
            except FormulaError as exc:
                raise ConfigurationError(str(exc), field="commissionFormula") from exc
        if model == CompensationModel.HOURLY_TIERS:
            formula = _validated_hour_tiers(request, formula)
        for field, value in (
            ("receiptsPercentage", request.receipts_percentage),
            ("supervisorPercentage", request.supervisor_percentage),
        ):
            if value is not None and not ZERO <= value <= HUNDRED:
                raise ConfigurationError("Percentage must be between 0 and 100", field=field)
        self.supervisors_repository.upsert_salary_config(
            SalaryConfigRecord(
                supervisor_code=code,
                salary_type=request.salary_type.strip(),
                salary_amount=amount,
                commission_formula=formula,
                receipts_percentage=request.receipts_percentage,
                supervisor_percentage=request.supervisor_percentage,
            )
        )
        self.coordinator.salary_config_changed(code)
        return self.get_salary_config(code)

    def get_equipment_limits(self, code: Optional[str] = None) -> List[EquipmentLimitsItem]:
        if code:
            limits = {code: self.config_repository.get_limits(code)}
        else:
            limits = self.config_repository.get_all_limits()
        return [
            EquipmentLimitsItem(supervisor_code=supervisor_code, limits=value.as_dict())
            for supervisor_code, value in limits.items()
        ]

    def update_equipment_limits(self, request: EquipmentLimitsUpdate) -> EquipmentLimitsItem:
        code = request.supervisor_code.strip()
        values = _validated_config_values(request.limits, "limits", whole=True)
        previous = self.config_repository.get_limits(code)
        merged = EquipmentLimits(**{**previous.as_dict(), **values})
        self.config_repository.save_limits(code, merged)
        self.coordinator.invalidate(code)
        return EquipmentLimitsItem(supervisor_code=code, limits=merged.as_dict())

    def get_equipment_pricing(self) -> EquipmentPricingItem:
        return EquipmentPricingItem(prices=self.config_repository.get_pricing().as_dict())

    def update_equipment_pricing(self, request: EquipmentPricingUpdate) -> EquipmentPricingItem:
        values = _validated_config_values(request.prices, "prices", whole=False)
        previous = self.config_repository.get_pricing()
        merged = EquipmentPricing(**{**previous.as_dict(), **values})
        self.config_repository.save_pricing(merged)
        return EquipmentPricingItem(prices=merged.as_dict())

    def invalidate_cache(self, request: CacheInvalidateRequest) -> CacheInvalidateResult:
        if request.clear_all:
            return CacheInvalidateResult(tag=None, invalidated=self.coordinator.clear_all())
        tag = (request.tag or "").strip()
        if not tag:
            raise BadRequestError("Provide a tag or set clearAll")
        return CacheInvalidateResult(tag=tag, invalidated=self.coordinator.invalidate(tag))
