from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Mapping, Optional, Tuple

from src.analytics.commission_formula import FormulaError, compile_formula
from src.models.compensation import (
    DEFAULT_HOUR_TIERS,
    EQUIPMENT_KINDS,
    RECEIPTS_PER_ORDER,
    CompensationModel,
    EquipmentLimits,
    EquipmentPricing,
    HourTier,
    SalaryModelConfig,
    parse_hour_tiers,
)
from src.models.records import PeriodCell
from src.schemas.salary import EquipmentLineItem
from src.shared.money import ZERO, quantize
from src.shared.time import month_overlaps

# Hours thresholds for the legacy order multiplier, highest first.
LEGACY_MULTIPLIERS: Tuple[Tuple[float, float], ...] = (
    (400, 1.5),
    (300, 1.4),
    (200, 1.3),
    (100, 1.2),
)
HUNDRED = Decimal("100")


@dataclass
class BaseSalary:
    base_salary: Decimal = ZERO
    commission: Decimal = ZERO
    total_salary: Decimal = ZERO
    multiplier: float = 1.0
    commission_rate: Optional[Decimal] = None
    warnings: List[str] = field(default_factory=list)


def legacy_multiplier(total_hours: float) -> float:
    for threshold, multiplier in LEGACY_MULTIPLIERS:
        if total_hours >= threshold:
            return multiplier
    return 1.0


def tier_rate(tiers: Tuple[HourTier, ...], avg_daily_hours: float) -> Decimal:
    """Rate of the first tier containing ``avg_daily_hours``; 1 per order when none does."""
    for tier in tiers:
        if tier.min_hours <= avg_daily_hours <= tier.max_hours:
            return tier.rate_per_order
    return Decimal("1")


def _commission(amount: Decimal, rate: Optional[Decimal] = None, warnings: Optional[List[str]] = None) -> BaseSalary:
    commission = quantize(max(amount, ZERO))
    return BaseSalary(
        commission=commission,
        total_salary=commission,
        commission_rate=rate,
        warnings=list(warnings or []),
    )


def calculate_base_salary(config: SalaryModelConfig, variables: Mapping[str, float]) -> BaseSalary:
    """Base pay and commission for one supervisor under its compensation model.

    ``variables`` carries the formula inputs (orders, hours, acceptance,
    ridersCount, days, avgDailyHours) for the aggregation window.
    """
    orders = float(variables.get("orders", 0))
    if config.model in (CompensationModel.FIXED, CompensationModel.CUSTOM):
        amount = quantize(config.amount)
        return BaseSalary(base_salary=amount, total_salary=amount)
    if config.model == CompensationModel.COMMISSION:
        if not config.commission_formula:
            return BaseSalary(
                warnings=[f"No commission formula configured for {config.supervisor_code}; commission is 0"]
            )
        try:
            formula = compile_formula(config.commission_formula)
            value = formula.evaluate(variables)
        except FormulaError as exc:
            return BaseSalary(warnings=[f"Commission formula for {config.supervisor_code} ignored: {exc}"])
        rate = Decimal(str(formula.rate_per_order)) if formula.rate_per_order is not None else None
        return _commission(Decimal(str(value)), rate)
    if config.model == CompensationModel.HOURLY_TIERS:
        warnings: List[str] = []
        try:
            tiers = parse_hour_tiers(config.commission_formula)
        except ValueError:
            warnings.append(f"Hour tiers for {config.supervisor_code} are malformed; using default tiers")
            tiers = DEFAULT_HOUR_TIERS
        rate = tier_rate(tiers, float(variables.get("avgDailyHours", 0)))
        return _commission(Decimal(int(orders)) * rate, rate, warnings)
    if config.model == CompensationModel.RECEIPTS_SHARE:
        receipts = Decimal(int(orders)) * RECEIPTS_PER_ORDER
        share = receipts * config.receipts_percentage / HUNDRED * config.supervisor_percentage / HUNDRED
        return _commission(share)
    multiplier = legacy_multiplier(float(variables.get("hours", 0)))
    base = quantize(Decimal(int(orders)) * Decimal(str(multiplier)))
    return BaseSalary(base_salary=base, total_salary=base, multiplier=multiplier)


def calculate_equipment_cost(
    requested: Mapping[str, int],
    limits: EquipmentLimits,
    pricing: EquipmentPricing,
) -> Tuple[List[EquipmentLineItem], Decimal, List[str]]:
    """Deduct each kind at ``min(requested, limit) * unit price``."""
    items: List[EquipmentLineItem] = []
    warnings: List[str] = []
    total = ZERO
    for kind in EQUIPMENT_KINDS:
        quantity = max(int(requested.get(kind, 0)), 0)
        limit = limits.get(kind)
        deducted = min(quantity, limit)
        unit_price = pricing.get(kind)
        line_total = quantize(deducted * unit_price)
        capped = quantity > limit
        if capped:
            warnings.append(f"Equipment '{kind}' requested {quantity} exceeds limit {limit}; deducted {deducted}")
        if quantity or line_total:
            items.append(
                EquipmentLineItem(
                    kind=kind,
                    requested=quantity,
                    limit=limit,
                    deducted=deducted,
                    unit_price=unit_price,
                    total=line_total,
                    capped=capped,
                )
            )
        total += line_total
    return items, quantize(total), warnings


def period_in_range(period: PeriodCell, start_date: date, end_date: date) -> bool:
    """Ledger period check: a date in the window, or a month overlapping it.

    A blank cell applies to every window; an unreadable one to none.
    """
    if period.on_date is not None:
        return start_date <= period.on_date <= end_date
    if period.month is not None:
        return month_overlaps(period.month, start_date, end_date)
    return period.raw is None


def clamp_net(value: Decimal) -> Decimal:
    return quantize(max(value, ZERO))
