from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from src.analytics.performance import calculate_totals, latest_wallet_by_rider
from src.analytics.salary import (
    calculate_base_salary,
    calculate_equipment_cost,
    clamp_net,
    period_in_range,
)
from src.core.config import get_settings
from src.core.errors import NotFoundError
from src.models.compensation import (
    DEFAULT_RECEIPTS_PERCENTAGE,
    DEFAULT_SUPERVISOR_PERCENTAGE,
    CompensationModel,
    SalaryModelConfig,
    resolve_model_tag,
)
from src.models.records import SupervisorRecord
from src.repositories.compensation_config_repository import CompensationConfigRepository
from src.repositories.ledger_repository import LedgerRepository
from src.repositories.supervisors_repository import SupervisorsRepository
from src.schemas.salary import SalaryBatch, SalaryBreakdown, SalaryOverview
from src.services.performance_service import PerformanceService
from src.shared.money import ZERO, quantize, total
from src.shared.time import month_bounds, months_in_range, previous_month

logger = logging.getLogger(__name__)


class CompensationService:
    def __init__(
        self,
        performance_service: PerformanceService,
        supervisors_repository: SupervisorsRepository,
        ledger_repository: LedgerRepository,
        config_repository: CompensationConfigRepository,
        security_inquiry_cost: Optional[Decimal] = None,
    ) -> None:
        self.performance_service = performance_service
        self.supervisors_repository = supervisors_repository
        self.ledger_repository = ledger_repository
        self.config_repository = config_repository
        if security_inquiry_cost is None:
            security_inquiry_cost = get_settings().security_inquiry_cost
        self.security_inquiry_cost = security_inquiry_cost

    def resolve_model(
        self,
        supervisor_code: str,
        supervisor: Optional[SupervisorRecord] = None,
        fresh: bool = False,
    ) -> Tuple[SalaryModelConfig, List[str]]:
        """Salary settings sheet first, then the supervisor row, then ``legacy``."""
        warnings: List[str] = []
        config = self.supervisors_repository.get_salary_config(supervisor_code, fresh=fresh)
        receipts_percentage = DEFAULT_RECEIPTS_PERCENTAGE
        supervisor_percentage = DEFAULT_SUPERVISOR_PERCENTAGE
        if config is not None and config.salary_type:
            tag, amount, formula, source = (
                config.salary_type,
                config.salary_amount,
                config.commission_formula,
                "salary_settings",
            )
            if config.receipts_percentage is not None:
                receipts_percentage = config.receipts_percentage
            if config.supervisor_percentage is not None:
                supervisor_percentage = config.supervisor_percentage
        elif supervisor is not None and supervisor.salary_type:
            tag, amount, formula, source = (
                supervisor.salary_type,
                supervisor.salary_amount,
                supervisor.commission_formula,
                "supervisor",
            )
        else:
            return SalaryModelConfig(supervisor_code=supervisor_code, model=CompensationModel.LEGACY), warnings
        model = resolve_model_tag(tag)
        if model is None:
            warnings.append(f"Unknown compensation model '{tag}' for {supervisor_code}; using legacy")
            logger.warning("Unknown compensation model %s for supervisor %s", tag, supervisor_code)
            model = CompensationModel.LEGACY
        return (
            SalaryModelConfig(
                supervisor_code=supervisor_code,
                model=model,
                amount=amount or ZERO,
                commission_formula=formula,
                receipts_percentage=receipts_percentage,
                supervisor_percentage=supervisor_percentage,
                source=source,
                raw_tag=tag,
            ),
            warnings,
        )

    def calculate_salary(
        self,
        supervisor_code: str,
        start_date: date,
        end_date: date,
        fresh: bool = False,
    ) -> SalaryBreakdown:
        code = supervisor_code.strip()
        supervisors = self.supervisors_repository.list_supervisors(fresh=fresh)
        supervisor = next((item for item in supervisors.records if item.code == code), None)
        if supervisor is None and not supervisors.degraded:
            raise NotFoundError(f"Supervisor {code} not found")
        return self._calculate(code, supervisor, start_date, end_date, supervisors.degraded, fresh)

    def _calculate(
        self,
        code: str,
        supervisor: Optional[SupervisorRecord],
        start_date: date,
        end_date: date,
        degraded: bool,
        fresh: bool,
    ) -> SalaryBreakdown:
        warnings: List[str] = []
        model_config, model_warnings = self.resolve_model(code, supervisor, fresh=fresh)
        warnings.extend(model_warnings)

        record_set = self.performance_service.performance_of(code, start_date, end_date, fresh=fresh)
        degraded = degraded or record_set.degraded
        warnings.extend(record_set.warnings)
        totals = calculate_totals(record_set.records)
        riders_count = len(record_set.riders)
        days = totals.working_days
        avg_daily_hours = round(totals.total_hours / days, 2) if days else 0.0
        variables = {
            "orders": float(totals.total_orders),
            "hours": totals.total_hours,
            "acceptance": totals.avg_acceptance,
            "ridersCount": float(riders_count),
            "days": float(days),
            "avgDailyHours": avg_daily_hours,
        }
        base = calculate_base_salary(model_config, variables)
        warnings.extend(base.warnings)

        debt_summary = self.performance_service.debts_of(code, fresh=fresh)
        degraded = degraded or debt_summary.degraded
        debts = sum((row.amount for row in debt_summary.riders), ZERO)
        riders_with_debts = {row.rider_code for row in debt_summary.riders}
        for rider_code, wallet in sorted(latest_wallet_by_rider(record_set.records).items()):
            if rider_code not in riders_with_debts and wallet > 0:
                debts += wallet

        deductions = self.ledger_repository.list_deductions(code, fresh=fresh)
        advances = self.ledger_repository.list_advances(code, fresh=fresh)
        equipment_issues = self.ledger_repository.list_equipment_issues(code, fresh=fresh)
        inquiries = self.ledger_repository.list_security_inquiries(code, fresh=fresh)
        targets = self.ledger_repository.list_bonus_targets(code, fresh=fresh)
        for ledger in (deductions, advances, equipment_issues, inquiries, targets):
            degraded = degraded or ledger.degraded
            warnings.extend(ledger.warnings)

        administrative = total(
            entry.amount for entry in deductions.records if period_in_range(entry.period, start_date, end_date)
        )
        advances_total = total(
            entry.amount for entry in advances.records if period_in_range(entry.period, start_date, end_date)
        )

        requested: Dict[str, int] = defaultdict(int)
        for issue in equipment_issues.records:
            if period_in_range(issue.period, start_date, end_date):
                for kind, quantity in issue.quantities:
                    requested[kind] += quantity
        equipment_items, equipment_cost, equipment_warnings = calculate_equipment_cost(
            requested,
            self.config_repository.get_limits(code),
            self.config_repository.get_pricing(),
        )
        warnings.extend(equipment_warnings)

        inquiry_count = sum(
            1
            for inquiry in inquiries.records
            if inquiry.inquiry_date is None or start_date <= inquiry.inquiry_date <= end_date
        )
        security_cost = quantize(inquiry_count * self.security_inquiry_cost)

        window_months = months_in_range(start_date, end_date)
        bonus = total(target.bonus for target in targets.records if target.month in window_months)

        debts = quantize(debts)
        total_deductions = total([debts, administrative, advances_total, security_cost, equipment_cost])
        net_unclamped = quantize(base.total_salary + bonus - total_deductions)
        if net_unclamped < 0:
            warnings.append(f"Deductions exceed earnings by {abs(net_unclamped):.2f}; net salary reported as 0")

        return SalaryBreakdown(
            supervisor_code=code,
            start_date=start_date,
            end_date=end_date,
            model=model_config.model.value,
            base_salary=base.base_salary,
            commission=base.commission,
            total_salary=base.total_salary,
            total_orders=totals.total_orders,
            total_hours=totals.total_hours,
            avg_daily_hours=avg_daily_hours,
            riders_count=riders_count,
            multiplier=base.multiplier,
            commission_rate=base.commission_rate,
            debts=debts,
            administrative_deductions=administrative,
            deductions=quantize(debts + administrative),
            advances=advances_total,
            security_inquiries=inquiry_count,
            security_cost=security_cost,
            equipment_cost=equipment_cost,
            equipment=equipment_items,
            bonus=bonus,
            total_deductions=total_deductions,
            net_salary_unclamped=net_unclamped,
            net_salary=clamp_net(net_unclamped),
            degraded=degraded,
            warnings=warnings,
        )

    def salary_overview(self, supervisor_code: str, today: Optional[date] = None) -> SalaryOverview:
        today = today or date.today()
        current_start, current_end = month_bounds(today.year, today.month)
        previous_start, previous_end = month_bounds(*previous_month(today))
        return SalaryOverview(
            supervisor_code=supervisor_code.strip(),
            current_month=self.calculate_salary(supervisor_code, current_start, current_end),
            previous_month=self.calculate_salary(supervisor_code, previous_start, previous_end),
        )

    def calculate_all(self, start_date: date, end_date: date, fresh: bool = False) -> SalaryBatch:
        supervisors = self.supervisors_repository.list_supervisors(fresh=fresh)
        salaries = [
            self._calculate(supervisor.code, supervisor, start_date, end_date, supervisors.degraded, fresh)
            for supervisor in supervisors.records
        ]
        return SalaryBatch(
            start_date=start_date,
            end_date=end_date,
            total_net_salary=total(item.net_salary for item in salaries),
            total_deductions=total(item.total_deductions for item in salaries),
            salaries=salaries,
            degraded=supervisors.degraded or any(item.degraded for item in salaries),
        )
