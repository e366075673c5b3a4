from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from src.analytics.performance import (
    build_daily_series,
    calculate_totals,
    filter_owned_in_range,
    rank_top_riders,
    total_debts_by_rider,
)
from src.core.cache import CacheKeys, RecordCache
from src.models.records import DebtRecord, PerformanceRecord, PerformanceRecordSet
from src.repositories.performance_repository import DebtsRepository, PerformanceRepository
from src.repositories.riders_repository import RidersRepository
from src.repositories.supervisors_repository import SupervisorsRepository
from src.schemas.performance import (
    DebtItem,
    DebtSummary,
    PerformanceRecordItem,
    PerformanceSummary,
    SupervisorPerformanceOverview,
    SupervisorPerformanceRow,
)
from src.services.ownership_service import OwnershipService
from src.shared.money import total

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5


class PerformanceService:
    def __init__(
        self,
        ownership_service: OwnershipService,
        performance_repository: PerformanceRepository,
        debts_repository: DebtsRepository,
        supervisors_repository: SupervisorsRepository,
        riders_repository: RidersRepository,
        cache: RecordCache,
        ttl: Optional[float] = None,
    ) -> None:
        self.ownership_service = ownership_service
        self.performance_repository = performance_repository
        self.debts_repository = debts_repository
        self.supervisors_repository = supervisors_repository
        self.riders_repository = riders_repository
        self.cache = cache
        self.ttl = ttl

    def performance_of(
        self,
        supervisor_code: str,
        start_date: date,
        end_date: date,
        fresh: bool = False,
    ) -> PerformanceRecordSet:
        code = supervisor_code.strip()
        key = CacheKeys.performance(code, start_date.isoformat(), end_date.isoformat())
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        owned = self.ownership_service.owned(code, fresh=fresh)
        warnings = list(owned.warnings)
        degraded = owned.degraded
        records: List[PerformanceRecord] = []
        if owned.records:
            performance = self.performance_repository.list_performance(fresh=fresh)
            degraded = degraded or performance.degraded
            warnings.extend(performance.warnings)
            rider_codes = {rider.code for rider in owned.records}
            records = sorted(
                filter_owned_in_range(performance.records, rider_codes, start_date, end_date),
                key=lambda record: (record.record_date, record.rider_code),
            )
        result = PerformanceRecordSet(
            supervisor_code=code,
            start_date=start_date,
            end_date=end_date,
            riders=list(owned.records),
            records=records,
            degraded=degraded,
            warnings=warnings,
        )
        if degraded:
            logger.warning("Performance for %s computed from degraded data", code)
        else:
            self.cache.set(key, result, self.ttl)
        return result

    def summarize(
        self,
        supervisor_code: str,
        start_date: date,
        end_date: date,
        top_n: int = DEFAULT_TOP_N,
        fresh: bool = False,
    ) -> PerformanceSummary:
        record_set = self.performance_of(supervisor_code, start_date, end_date, fresh=fresh)
        riders = {rider.code: rider for rider in record_set.riders}
        return PerformanceSummary(
            supervisor_code=record_set.supervisor_code,
            start_date=start_date,
            end_date=end_date,
            riders_count=len(record_set.riders),
            totals=calculate_totals(record_set.records),
            top_riders=rank_top_riders(record_set.records, riders, top_n),
            daily=build_daily_series(record_set.records, start_date, end_date),
            degraded=record_set.degraded,
            warnings=record_set.warnings,
        )

    @staticmethod
    def to_record_items(record_set: PerformanceRecordSet) -> List[PerformanceRecordItem]:
        names = {rider.code: rider.name for rider in record_set.riders}
        return [
            PerformanceRecordItem(
                record_date=record.record_date,
                rider_code=record.rider_code,
                rider_name=names.get(record.rider_code, ""),
                hours=record.hours,
                break_time=record.break_time,
                delay=record.delay,
                absence=record.absence,
                is_absent=record.is_absent,
                orders=record.orders,
                acceptance=record.acceptance,
                wallet=record.wallet,
            )
            for record in record_set.records
        ]

    def debts_of(self, supervisor_code: str, fresh: bool = False) -> DebtSummary:
        code = supervisor_code.strip()
        key = CacheKeys.debts(code)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        owned = self.ownership_service.owned(code, fresh=fresh)
        warnings = list(owned.warnings)
        degraded = owned.degraded
        debts: List[DebtRecord] = []
        if owned.records:
            result = self.debts_repository.list_debts(fresh=fresh)
            degraded = degraded or result.degraded
            warnings.extend(result.warnings)
            rider_codes = {rider.code for rider in owned.records}
            debts = [debt for debt in result.records if debt.rider_code in rider_codes]
        riders = {rider.code: rider for rider in owned.records}
        summary = DebtSummary(
            supervisor_code=code,
            total_amount=total(debt.amount for debt in debts),
            riders=total_debts_by_rider(debts, riders),
            items=[
                DebtItem(rider_code=debt.rider_code, amount=debt.amount, on_date=debt.on_date, notes=debt.notes)
                for debt in debts
            ],
            degraded=degraded,
            warnings=warnings,
        )
        if not degraded:
            self.cache.set(key, summary, self.ttl)
        return summary

    def supervisor_overview(
        self,
        start_date: date,
        end_date: date,
        fresh: bool = False,
    ) -> SupervisorPerformanceOverview:
        supervisors = self.supervisors_repository.list_supervisors(fresh=fresh)
        riders = self.riders_repository.list_riders(fresh=fresh)
        performance = self.performance_repository.list_performance(fresh=fresh)
        degraded = supervisors.degraded or riders.degraded or performance.degraded
        warnings = supervisors.warnings + riders.warnings + performance.warnings

        owner_by_rider: Dict[str, str] = {}
        riders_per_supervisor: Dict[str, int] = defaultdict(int)
        for rider in riders.records:
            owner = rider.supervisor_code.strip()
            if owner:
                owner_by_rider[rider.code] = owner
                riders_per_supervisor[owner] += 1

        records_by_supervisor: Dict[str, List[PerformanceRecord]] = defaultdict(list)
        for record in performance.records:
            owner = owner_by_rider.get(record.rider_code)
            if owner and start_date <= record.record_date <= end_date:
                records_by_supervisor[owner].append(record)

        rows: List[SupervisorPerformanceRow] = []
        for supervisor in supervisors.records:
            totals = calculate_totals(records_by_supervisor.get(supervisor.code, []))
            riders_count = riders_per_supervisor.get(supervisor.code, 0)
            rows.append(
                SupervisorPerformanceRow(
                    code=supervisor.code,
                    name=supervisor.name,
                    region=supervisor.region,
                    riders_count=riders_count,
                    total_orders=totals.total_orders,
                    total_hours=totals.total_hours,
                    avg_acceptance=totals.avg_acceptance,
                    records_count=totals.records_count,
                    orders_per_rider=round(totals.total_orders / riders_count, 2) if riders_count else 0.0,
                )
            )
        rows.sort(key=lambda row: (-row.total_orders, row.code))

        all_records = [record for row in rows for record in records_by_supervisor.get(row.code, [])]
        grand = calculate_totals(all_records)
        return SupervisorPerformanceOverview(
            start_date=start_date,
            end_date=end_date,
            total_supervisors=len(rows),
            total_orders=grand.total_orders,
            total_hours=grand.total_hours,
            avg_acceptance=grand.avg_acceptance,
            total_records=grand.records_count,
            supervisors=rows,
            degraded=degraded,
            warnings=warnings,
        )
