from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from src.shared.base import BaseSchema


class PerformanceTotals(BaseSchema):
    total_orders: int = 0
    total_hours: float = 0.0
    avg_acceptance: float = 0.0
    total_absences: int = 0
    total_breaks: float = 0.0
    total_delay: float = 0.0
    wallet_total: Decimal = Decimal("0")
    records_count: int = 0
    active_riders_count: int = 0
    working_days: int = 0


class TopRider(BaseSchema):
    rank: int
    rider_code: str
    name: str
    orders: int
    hours: float
    acceptance: float


class DailyPerformancePoint(BaseSchema):
    day: date
    label: str
    orders: int
    hours: float
    absences: int


class PerformanceRecordItem(BaseSchema):
    record_date: date
    rider_code: str
    rider_name: str = ""
    hours: float
    break_time: float
    delay: float
    absence: str
    is_absent: bool
    orders: int
    acceptance: float
    wallet: Decimal


class PerformanceSummary(BaseSchema):
    supervisor_code: str
    start_date: date
    end_date: date
    riders_count: int
    totals: PerformanceTotals
    top_riders: List[TopRider]
    daily: List[DailyPerformancePoint]
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class RiderDebtTotal(BaseSchema):
    rider_code: str
    name: str = ""
    amount: Decimal
    entries: int


class DebtItem(BaseSchema):
    rider_code: str
    amount: Decimal
    on_date: Optional[date] = None
    notes: Optional[str] = None


class DebtSummary(BaseSchema):
    supervisor_code: str
    total_amount: Decimal
    riders: List[RiderDebtTotal]
    items: List[DebtItem]
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class SupervisorPerformanceRow(BaseSchema):
    code: str
    name: str
    region: str
    riders_count: int
    total_orders: int
    total_hours: float
    avg_acceptance: float
    records_count: int
    orders_per_rider: float


class SupervisorPerformanceOverview(BaseSchema):
    start_date: date
    end_date: date
    total_supervisors: int
    total_orders: int
    total_hours: float
    avg_acceptance: float
    total_records: int
    supervisors: List[SupervisorPerformanceRow]
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)
