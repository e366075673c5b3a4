from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.analytics.salary import (
    calculate_base_salary,
    calculate_equipment_cost,
    clamp_net,
    legacy_multiplier,
    period_in_range,
    tier_rate,
)
from src.models.compensation import (
    DEFAULT_HOUR_TIERS,
    CompensationModel,
    EquipmentLimits,
    EquipmentPricing,
    SalaryModelConfig,
    parse_hour_tiers,
)
from src.models.records import PeriodCell

VARIABLES = {"orders": 150.0, "hours": 320.0, "acceptance": 90.0, "ridersCount": 3.0, "days": 20.0, "avgDailyHours": 16.0}


@pytest.mark.parametrize(
    ("hours", "expected"),
    [(0, 1.0), (99.9, 1.0), (100, 1.2), (200, 1.3), (299, 1.3), (300, 1.4), (400, 1.5), (1000, 1.5)],
)
def test_legacy_multiplier_thresholds(hours, expected):
    assert legacy_multiplier(hours) == expected


def test_fixed_and_custom_models():
    fixed = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S1", model=CompensationModel.FIXED, amount=3000), VARIABLES
    )
    assert (fixed.base_salary, fixed.commission, fixed.total_salary) == (3000, 0, 3000)
    custom = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S1", model=CompensationModel.CUSTOM, amount=4321.5), VARIABLES
    )
    assert custom.total_salary == 4321.5
    assert custom.commission == 0


def test_commission_model_uses_formula():
    result = calculate_base_salary(
        SalaryModelConfig(
            supervisor_code="S2",
            model=CompensationModel.COMMISSION,
            commission_formula="orders * 2 + ridersCount * 10",
        ),
        VARIABLES,
    )
    assert result.base_salary == 0
    assert result.commission == 330.0
    assert result.total_salary == 330.0
    assert result.warnings == []


@pytest.mark.parametrize("formula", [None, "orders *", "import os"])
def test_commission_model_with_bad_formula_pays_zero_with_warning(formula):
    result = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S2", model=CompensationModel.COMMISSION, commission_formula=formula),
        VARIABLES,
    )
    assert result.commission == 0
    assert result.total_salary == 0
    assert len(result.warnings) == 1


def test_legacy_model_multiplies_orders():
    result = calculate_base_salary(SalaryModelConfig(supervisor_code="S3", model=CompensationModel.LEGACY), VARIABLES)
    assert result.multiplier == 1.4
    assert result.base_salary == 210.0


def test_equipment_deduction_is_capped_at_limit():
    items, total, warnings = calculate_equipment_cost(
        {"motorcycle_box": 5, "helmet": 1},
        EquipmentLimits(motorcycle_box=2, helmet=3),
        EquipmentPricing(motorcycle_box=550, helmet=150),
    )
    assert total == 2 * 550 + 150
    by_kind = {item.kind: item for item in items}
    assert by_kind["motorcycle_box"].deducted == 2
    assert by_kind["motorcycle_box"].capped is True
    assert by_kind["helmet"].capped is False
    assert len(warnings) == 1


def test_default_limits_deduct_nothing():
    _, total, warnings = calculate_equipment_cost({"jacket": 2}, EquipmentLimits(), EquipmentPricing(jacket=200))
    assert total == 0
    assert len(warnings) == 1


def test_period_in_range():
    start, end = date(2024, 1, 1), date(2024, 1, 31)
    assert period_in_range(PeriodCell(on_date=date(2024, 1, 31)), start, end)
    assert not period_in_range(PeriodCell(on_date=date(2024, 2, 1)), start, end)
    assert period_in_range(PeriodCell(month=1, raw="1"), start, end)
    assert not period_in_range(PeriodCell(month=2, raw="2"), start, end)
    assert period_in_range(PeriodCell(), start, end)
    assert not period_in_range(PeriodCell(raw="soon"), start, end)


def test_clamp_net():
    assert clamp_net(Decimal("-50")) == 0
    assert clamp_net(Decimal("12.345")) == Decimal("12.35")


def test_overflowing_formula_pays_zero_with_warning():
    result = calculate_base_salary(
        SalaryModelConfig(
            supervisor_code="S2",
            model=CompensationModel.COMMISSION,
            commission_formula="((10**8)**8)**8",
        ),
        VARIABLES,
    )
    assert result.commission == 0
    assert result.total_salary == 0
    assert len(result.warnings) == 1
    assert "S2" in result.warnings[0]


@pytest.mark.parametrize(
    ("avg_daily_hours", "expected"),
    [(0, "1.0"), (9, "1.0"), (100, "1.0"), (100.5, "1"), (150, "1.2"), (250, "1.3"), (401, "1.5")],
)
def test_default_hour_tiers(avg_daily_hours, expected):
    assert tier_rate(DEFAULT_HOUR_TIERS, avg_daily_hours) == Decimal(expected)


def test_hourly_tiers_model_pays_orders_times_default_rate():
    result = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S2", model=CompensationModel.HOURLY_TIERS),
        VARIABLES,
    )
    assert result.commission == Decimal("150.00")
    assert result.commission_rate == Decimal("1.0")
    assert result.base_salary == 0
    assert result.warnings == []


def test_hourly_tiers_model_reads_configured_ranges():
    tiers = '[{"minHours": 0, "maxHours": 10, "ratePerOrder": 1}, {"minHours": 10.5, "maxHours": 24, "ratePerOrder": 2.25}]'
    result = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S2", model=CompensationModel.HOURLY_TIERS, commission_formula=tiers),
        VARIABLES,
    )
    assert result.commission_rate == Decimal("2.25")
    assert result.commission == Decimal("337.50")


@pytest.mark.parametrize("tiers", ["not json", "{}", "[]", '[{"minHours": 5}]', '[{"minHours": 9, "maxHours": 1, "ratePerOrder": 1}]'])
def test_malformed_hour_tiers_fall_back_to_defaults(tiers):
    with pytest.raises(ValueError):
        parse_hour_tiers(tiers)
    result = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S2", model=CompensationModel.HOURLY_TIERS, commission_formula=tiers),
        VARIABLES,
    )
    assert result.commission == Decimal("150.00")
    assert len(result.warnings) == 1


def test_receipts_share_model_uses_estimated_receipts():
    result = calculate_base_salary(
        SalaryModelConfig(supervisor_code="S2", model=CompensationModel.RECEIPTS_SHARE),
        VARIABLES,
    )
    # 150 orders * 50 = 7500 receipts; 11% of that, 60% to the supervisor.
    assert result.commission == Decimal("495.00")
    assert result.total_salary == Decimal("495.00")


def test_receipts_share_model_uses_configured_percentages():
    result = calculate_base_salary(
        SalaryModelConfig(
            supervisor_code="S2",
            model=CompensationModel.RECEIPTS_SHARE,
            receipts_percentage=Decimal("10"),
            supervisor_percentage=Decimal("50"),
        ),
        VARIABLES,
    )
    assert result.commission == Decimal("375.00")
