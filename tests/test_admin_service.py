from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from src.core.errors import BadRequestError, ConfigurationError, NotFoundError
from src.models.sheets import DEBTS, PERFORMANCE, RIDERS, SALARY_SETTINGS, SUPERVISORS
from src.schemas.admin import (
    CacheInvalidateRequest,
    DebtUploadRequest,
    EquipmentLimitsUpdate,
    EquipmentPricingUpdate,
    PerformanceUploadRequest,
    SalaryConfigRequest,
)
from src.schemas.riders import RiderUpsertRequest, SupervisorUpsertRequest

JANUARY = (date(2024, 1, 1), date(2024, 1, 31))


def test_clear_then_aggregate_recomputes_from_empty_data(services, store):
    assert services.performance.summarize("S1", *JANUARY).totals.total_orders == 15
    assert services.performance.summarize("S2", *JANUARY).totals.total_orders == 40

    result = services.admin.clear_performance()

    assert result.invalidated >= 2
    assert store.sheets[PERFORMANCE.title] == [list(PERFORMANCE.columns)]
    assert services.performance.summarize("S1", *JANUARY).totals.total_orders == 0
    assert services.performance.summarize("S2", *JANUARY).totals.total_orders == 0


def test_upload_performance_normalizes_dates_and_invalidates(services, store):
    services.performance.summarize("S1", *JANUARY)
    request = PerformanceUploadRequest(
        rows=[
            {"recordDate": "13/01/2024", "riderCode": "R2", "hours": 5, "orders": 7},
            {"recordDate": "someday", "riderCode": "R2", "orders": 100},
        ]
    )
    result = services.admin.upload_performance(request)
    assert result.rows_written == 1
    assert result.rows_rejected == 1
    assert store.sheets[PERFORMANCE.title][-1][:2] == ["2024-01-13", "R2"]
    assert services.performance.summarize("S1", *JANUARY).totals.total_orders == 22


def test_upload_performance_override_date(services, store):
    request = PerformanceUploadRequest(
        rows=[{"recordDate": "garbage", "riderCode": "R1", "orders": 1}],
        override_date=date(2024, 1, 20),
    )
    services.admin.upload_performance(request)
    assert store.sheets[PERFORMANCE.title][-1][0] == "2024-01-20"


def test_upload_performance_without_readable_rows_is_rejected(services):
    request = PerformanceUploadRequest(rows=[{"recordDate": "??", "riderCode": "R1"}])
    with pytest.raises(BadRequestError):
        services.admin.upload_performance(request)


def test_upload_debts_append_and_replace(services, store):
    assert services.performance.debts_of("S1").total_amount == 200
    services.admin.upload_debts(DebtUploadRequest(rows=[{"riderCode": "R2", "amount": 75, "onDate": "1/4/2024"}]))
    assert store.sheets[DEBTS.title][-1] == ["R2", 75, "2024-01-04", ""]
    assert services.performance.debts_of("S1").total_amount == 275

    services.admin.upload_debts(DebtUploadRequest(rows=[{"riderCode": "R1", "amount": 10}], replace=True))
    assert services.performance.debts_of("S1").total_amount == 10


def test_moving_a_rider_updates_both_supervisors(services, store):
    assert services.ownership.rider_codes_of("S1") == {"R1", "R2"}
    assert services.ownership.rider_codes_of("S2") == {"R3"}

    result = services.admin.upsert_rider("R2", RiderUpsertRequest(name="Omar", supervisor_code="S2"))

    assert result.created is False
    assert services.ownership.rider_codes_of("S1") == {"R1"}
    assert services.ownership.rider_codes_of("S2") == {"R2", "R3"}


def test_new_rider_is_appended(services, store):
    result = services.admin.upsert_rider("R9", RiderUpsertRequest(name="New", supervisor_code="S1", join_date="13/01/2024"))
    assert result.created is True
    assert store.sheets[RIDERS.title][-1][0] == "R9"
    assert store.sheets[RIDERS.title][-1][6] == "2024-01-13"
    assert "R9" in services.ownership.rider_codes_of("S1")


def test_unassign_rider(services):
    services.ownership.rider_codes_of("S1")
    services.admin.unassign_rider("R1")
    assert services.ownership.rider_codes_of("S1") == {"R2"}
    with pytest.raises(NotFoundError):
        services.admin.unassign_rider("R404")


def test_supervisor_upsert_keeps_password_and_salary_columns(services, store):
    services.admin.upsert_supervisor("S1", SupervisorUpsertRequest(name="Salem A.", region="Qassim"))
    row = store.sheets[SUPERVISORS.title][1]
    assert row[:3] == ["S1", "Salem A.", "Qassim"]
    assert row[4] == "secret"
    assert row[5] == "fixed"


def test_delete_supervisor(services):
    services.admin.delete_supervisor("S2")
    with pytest.raises(NotFoundError):
        services.compensation.calculate_salary("S2", *JANUARY)


def test_salary_config_round_trip(services, store):
    response = services.admin.update_salary_config(
        "S1", SalaryConfigRequest(salary_type="commission", commission_formula="orders * 3")
    )
    assert response.model == "commission"
    assert response.source == "salary_settings"
    assert store.sheets[SALARY_SETTINGS.title][-1] == ["S1", "commission", "", "orders * 3", "", ""]
    assert services.compensation.calculate_salary("S1", *JANUARY).commission == 45


def test_hour_tiers_config_is_stored_as_json(services, store):
    response = services.admin.update_salary_config(
        "S2",
        SalaryConfigRequest(
            salary_type="hourly_tiers",
            hour_tiers=[
                {"minHours": 0, "maxHours": 8, "ratePerOrder": 1},
                {"minHours": 8, "maxHours": 24, "ratePerOrder": "2.5"},
            ],
        ),
    )
    assert response.model == "hourly_tiers"
    assert response.commission_formula is None
    assert [tier.rate_per_order for tier in response.hour_tiers] == [1, Decimal("2.5")]
    stored = store.sheets[SALARY_SETTINGS.title][-1]
    assert json.loads(stored[3])[1] == {"minHours": 8, "maxHours": 24, "ratePerOrder": 2.5}
    assert services.compensation.calculate_salary("S2", *JANUARY).commission == 100


def test_hour_tiers_default_when_none_configured(services):
    response = services.admin.update_salary_config("S2", SalaryConfigRequest(salary_type="commission_type1"))
    assert response.model == "hourly_tiers"
    assert len(response.hour_tiers) == 5


def test_receipts_share_config_round_trip(services, store):
    response = services.admin.update_salary_config(
        "S2",
        SalaryConfigRequest(salary_type="receipts_share", receipts_percentage=10, supervisor_percentage="55.5"),
    )
    assert response.receipts_percentage == 10
    assert response.supervisor_percentage == Decimal("55.5")
    assert store.sheets[SALARY_SETTINGS.title][-1] == ["S2", "receipts_share", "", "", 10, 55.5]
    # 40 orders * 50 = 2000 receipts; 10% base, 55.5% of it to the supervisor.
    assert services.compensation.calculate_salary("S2", *JANUARY).commission == 111


@pytest.mark.parametrize(
    "request_body",
    [
        SalaryConfigRequest(salary_type="weekly"),
        SalaryConfigRequest(salary_type="fixed"),
        SalaryConfigRequest(salary_type="fixed", salary_amount=-1),
        SalaryConfigRequest(salary_type="commission", commission_formula="orders * bonus"),
        SalaryConfigRequest(salary_type="hourly_tiers", commission_formula='[{"minHours": 1}]'),
        SalaryConfigRequest(
            salary_type="hourly_tiers",
            hour_tiers=[{"minHours": 10, "maxHours": 5, "ratePerOrder": 2}],
        ),
        SalaryConfigRequest(salary_type="receipts_share", receipts_percentage=150),
        SalaryConfigRequest(salary_type="receipts_share", supervisor_percentage=-1),
    ],
)
def test_invalid_salary_config_is_rejected(services, store, request_body):
    with pytest.raises(ConfigurationError):
        services.admin.update_salary_config("S1", request_body)
    assert SALARY_SETTINGS.title not in store.sheets


def test_equipment_limits_merge_with_previous(services):
    services.admin.update_equipment_limits(EquipmentLimitsUpdate(supervisor_code="S1", limits={"helmet": 2}))
    item = services.admin.update_equipment_limits(
        EquipmentLimitsUpdate(supervisor_code="S1", limits={"motorcycleBox": 1})
    )
    assert item.limits["helmet"] == 2
    assert item.limits["motorcycle_box"] == 1
    assert services.admin.get_equipment_limits("S1")[0].limits == item.limits


@pytest.mark.parametrize("limits", [{"helmet": -1}, {"helmet": "two"}, {"helmet": 1.5}, {"rocket": 1}, {"helmet": True}])
def test_invalid_equipment_limits_are_rejected_and_nothing_stored(services, tmp_path, limits):
    with pytest.raises(ConfigurationError):
        services.admin.update_equipment_limits(EquipmentLimitsUpdate(supervisor_code="S1", limits=limits))
    assert services.admin.get_equipment_limits() == []


def test_corrupt_stored_limits_fall_back_to_zero(services):
    services.admin.update_equipment_limits(EquipmentLimitsUpdate(supervisor_code="S1", limits={"jacket": 4}))
    path = f"{services.config_repository.config_dir}/equipment-limits.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"S1": {"jacket": -3, "helmet": "x", "tshirt": 2}}, f)
    limits = services.config_repository.get_limits("S1")
    assert limits.jacket == 0
    assert limits.helmet == 0
    assert limits.tshirt == 2


def test_equipment_pricing(services):
    services.admin.update_equipment_pricing(EquipmentPricingUpdate(prices={"helmet": 150, "jacket": 200.5}))
    pricing = services.admin.get_equipment_pricing()
    assert pricing.prices["helmet"] == 150
    assert pricing.prices["jacket"] == 200.5
    assert pricing.prices["tshirt"] == 0
    with pytest.raises(ConfigurationError):
        services.admin.update_equipment_pricing(EquipmentPricingUpdate(prices={"helmet": -5}))
    assert services.admin.get_equipment_pricing().prices["helmet"] == 150


def test_invalidate_cache_by_tag_and_all(services):
    services.performance.summarize("S1", *JANUARY)
    result = services.admin.invalidate_cache(CacheInvalidateRequest(tag="S1"))
    assert result.invalidated >= 2
    services.performance.summarize("S1", *JANUARY)
    assert services.admin.invalidate_cache(CacheInvalidateRequest(clear_all=True)).invalidated > 0
    assert services.cache.keys() == []
    with pytest.raises(BadRequestError):
        services.admin.invalidate_cache(CacheInvalidateRequest())
