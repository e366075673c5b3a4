from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from src.shared.base import BaseSchema


class EquipmentLineItem(BaseSchema):
    kind: str
    requested: int
    limit: int
    deducted: int
    unit_price: Decimal
    total: Decimal
    capped: bool


class SalaryBreakdown(BaseSchema):
    supervisor_code: str
    start_date: date
    end_date: date
    model: str
    base_salary: Decimal
    commission: Decimal
    total_salary: Decimal
    total_orders: int
    total_hours: float
    avg_daily_hours: float = 0.0
    riders_count: int
    multiplier: float = 1.0
    commission_rate: Optional[Decimal] = None
    debts: Decimal
    administrative_deductions: Decimal
    deductions: Decimal
    advances: Decimal
    security_inquiries: int
    security_cost: Decimal
    equipment_cost: Decimal
    equipment: List[EquipmentLineItem]
    bonus: Decimal
    total_deductions: Decimal
    net_salary_unclamped: Decimal
    net_salary: Decimal
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class SalaryOverview(BaseSchema):
    supervisor_code: str
    current_month: SalaryBreakdown
    previous_month: SalaryBreakdown


class SalaryBatch(BaseSchema):
    start_date: date
    end_date: date
    total_net_salary: Decimal
    total_deductions: Decimal
    salaries: List[SalaryBreakdown]
    degraded: bool = False
