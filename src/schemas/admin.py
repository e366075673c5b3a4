from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from src.models.compensation import HourTier
from src.shared.base import BaseSchema, RequestSchema


class PerformanceUploadRow(RequestSchema):
    record_date: str = Field(min_length=1)
    rider_code: str = Field(min_length=1)
    hours: float = Field(default=0.0, ge=0)
    break_time: float = 0.0
    delay: float = 0.0
    absence: str = ""
    orders: int = Field(default=0, ge=0)
    acceptance: float = Field(default=0.0, ge=0, le=100)
    wallet: Decimal = Decimal("0")


class PerformanceUploadRequest(RequestSchema):
    rows: List[PerformanceUploadRow] = Field(min_length=1)
    override_date: Optional[date] = None


class DebtUploadRow(RequestSchema):
    rider_code: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    on_date: Optional[str] = None
    notes: Optional[str] = None


class DebtUploadRequest(RequestSchema):
    rows: List[DebtUploadRow] = Field(min_length=1)
    replace: bool = False


class UploadResult(BaseSchema):
    rows_written: int
    rows_rejected: int
    invalidated: int
    warnings: List[str] = Field(default_factory=list)


class MutationResult(BaseSchema):
    code: str
    created: bool = False
    invalidated: int = 0
    message: str = ""


class SalaryConfigRequest(RequestSchema):
    salary_type: str = Field(min_length=1)
    salary_amount: Optional[Decimal] = None
    commission_formula: Optional[str] = None
    hour_tiers: Optional[List[HourTier]] = None
    receipts_percentage: Optional[Decimal] = None
    supervisor_percentage: Optional[Decimal] = None


class SalaryConfigResponse(BaseSchema):
    supervisor_code: str
    model: str
    salary_type: Optional[str] = None
    salary_amount: Decimal = Decimal("0")
    commission_formula: Optional[str] = None
    hour_tiers: Optional[List[HourTier]] = None
    receipts_percentage: Optional[Decimal] = None
    supervisor_percentage: Optional[Decimal] = None
    source: str
    warnings: List[str] = Field(default_factory=list)


class EquipmentLimitsUpdate(RequestSchema):
    supervisor_code: str = Field(min_length=1)
    limits: Dict[str, Any]


class EquipmentLimitsItem(BaseSchema):
    supervisor_code: str
    limits: Dict[str, int]


class EquipmentPricingUpdate(RequestSchema):
    prices: Dict[str, Any]


class EquipmentPricingItem(BaseSchema):
    prices: Dict[str, Decimal]


class CacheInvalidateRequest(RequestSchema):
    tag: Optional[str] = None
    clear_all: bool = False


class CacheInvalidateResult(BaseSchema):
    tag: Optional[str] = None
    invalidated: int
