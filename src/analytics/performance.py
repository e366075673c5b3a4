from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from src.models.records import DebtRecord, PerformanceRecord, RiderRecord
from src.schemas.performance import (
    DailyPerformancePoint,
    PerformanceTotals,
    RiderDebtTotal,
    TopRider,
)
from src.shared.money import ZERO, quantize
from src.shared.time import iter_days


def filter_owned_in_range(
    records: Iterable[PerformanceRecord],
    rider_codes: Set[str],
    start_date: date,
    end_date: date,
) -> List[PerformanceRecord]:
    return [
        record
        for record in records
        if record.rider_code in rider_codes and start_date <= record.record_date <= end_date
    ]


def calculate_totals(records: Sequence[PerformanceRecord]) -> PerformanceTotals:
    total_orders = 0
    total_hours = 0.0
    total_breaks = 0.0
    total_delay = 0.0
    total_wallet = ZERO
    total_absences = 0
    acceptance_sum = 0.0
    acceptance_count = 0
    active_riders: Set[str] = set()
    for record in records:
        total_orders += record.orders
        total_hours += record.hours
        total_breaks += record.break_time
        total_delay += record.delay
        total_wallet += record.wallet
        active_riders.add(record.rider_code)
        if record.is_absent:
            total_absences += 1
        if record.acceptance > 0:
            acceptance_sum += record.acceptance
            acceptance_count += 1
    working_days = len({record.record_date for record in records})
    return PerformanceTotals(
        total_orders=total_orders,
        total_hours=round(total_hours, 2),
        avg_acceptance=round(acceptance_sum / acceptance_count, 2) if acceptance_count else 0.0,
        total_absences=total_absences,
        total_breaks=round(total_breaks, 2),
        total_delay=round(total_delay, 2),
        wallet_total=quantize(total_wallet),
        records_count=len(records),
        active_riders_count=len(active_riders),
        working_days=working_days,
    )


def rank_top_riders(
    records: Sequence[PerformanceRecord],
    riders: Mapping[str, RiderRecord],
    top_n: int,
) -> List[TopRider]:
    buckets: Dict[str, Dict[str, float]] = {}
    for record in records:
        bucket = buckets.setdefault(
            record.rider_code,
            {"orders": 0.0, "hours": 0.0, "acceptance_sum": 0.0, "acceptance_count": 0.0},
        )
        bucket["orders"] += record.orders
        bucket["hours"] += record.hours
        if record.acceptance > 0:
            bucket["acceptance_sum"] += record.acceptance
            bucket["acceptance_count"] += 1
    ranked = sorted(
        buckets.items(),
        key=lambda item: (-item[1]["orders"], -item[1]["hours"], item[0]),
    )[:top_n]
    top_riders: List[TopRider] = []
    for index, (rider_code, bucket) in enumerate(ranked, start=1):
        rider = riders.get(rider_code)
        acceptance_count = bucket["acceptance_count"]
        top_riders.append(
            TopRider(
                rank=index,
                rider_code=rider_code,
                name=rider.name if rider else "",
                orders=int(bucket["orders"]),
                hours=round(bucket["hours"], 2),
                acceptance=round(bucket["acceptance_sum"] / acceptance_count, 2) if acceptance_count else 0.0,
            )
        )
    return top_riders


def build_daily_series(
    records: Sequence[PerformanceRecord],
    start_date: date,
    end_date: date,
) -> List[DailyPerformancePoint]:
    orders: Dict[date, int] = defaultdict(int)
    hours: Dict[date, float] = defaultdict(float)
    absences: Dict[date, int] = defaultdict(int)
    for record in records:
        orders[record.record_date] += record.orders
        hours[record.record_date] += record.hours
        if record.is_absent:
            absences[record.record_date] += 1
    return [
        DailyPerformancePoint(
            day=day,
            label=f"{day.day}/{day.month}",
            orders=orders.get(day, 0),
            hours=round(hours.get(day, 0.0), 2),
            absences=absences.get(day, 0),
        )
        for day in iter_days(start_date, end_date)
    ]


def latest_wallet_by_rider(records: Iterable[PerformanceRecord]) -> Dict[str, Decimal]:
    """Wallet is a running balance; the most recent row per rider wins."""
    latest: Dict[str, PerformanceRecord] = {}
    for record in records:
        current = latest.get(record.rider_code)
        if current is None or record.record_date >= current.record_date:
            latest[record.rider_code] = record
    return {rider_code: record.wallet for rider_code, record in latest.items()}


def total_debts_by_rider(
    debts: Iterable[DebtRecord],
    riders: Optional[Mapping[str, RiderRecord]] = None,
) -> List[RiderDebtTotal]:
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    counts: Dict[str, int] = defaultdict(int)
    for debt in debts:
        totals[debt.rider_code] += debt.amount
        counts[debt.rider_code] += 1
    rows: List[RiderDebtTotal] = []
    for rider_code in sorted(totals, key=lambda code: (-totals[code], code)):
        rider = riders.get(rider_code) if riders else None
        rows.append(
            RiderDebtTotal(
                rider_code=rider_code,
                name=rider.name if rider else "",
                amount=quantize(totals[rider_code]),
                entries=counts[rider_code],
            )
        )
    return rows
