from __future__ import annotations

from decimal import Decimal

from src.models.sheets import PERFORMANCE, RIDERS

JANUARY = {"start_date": "2024-01-01", "end_date": "2024-01-31"}


def test_supervisor_performance_overview(client):
    response = client.get("/api/v1/admin/supervisor-performance", params=JANUARY)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalOrders"] == 55
    assert data["supervisors"][0]["code"] == "S2"


def test_salaries_for_all_supervisors(client):
    response = client.get("/api/v1/admin/salaries", params=JANUARY)
    assert response.status_code == 200
    data = response.json()["data"]
    assert [item["supervisorCode"] for item in data["salaries"]] == ["S1", "S2"]
    assert Decimal(data["totalNetSalary"]) == 2830


def test_clear_performance_invalidates_cached_aggregates(client, store):
    before = client.get("/api/v1/supervisors/S1/performance", params=JANUARY).json()
    assert before["data"]["totals"]["totalOrders"] == 15

    response = client.post("/api/v1/admin/performance/clear")
    assert response.status_code == 200
    assert store.sheets[PERFORMANCE.title] == [list(PERFORMANCE.columns)]

    after = client.get("/api/v1/supervisors/S1/performance", params=JANUARY).json()
    assert after["data"]["totals"]["totalOrders"] == 0


def test_upload_performance(client):
    response = client.post(
        "/api/v1/admin/performance/upload",
        json={"rows": [{"recordDate": "2024-01-07", "riderCode": "R1", "orders": 4, "acceptance": 88}]},
    )
    assert response.status_code == 200
    assert response.json()["data"]["rowsWritten"] == 1
    summary = client.get("/api/v1/supervisors/S1/performance", params=JANUARY).json()
    assert summary["data"]["totals"]["totalOrders"] == 19


def test_upload_performance_requires_rows(client):
    response = client.post("/api/v1/admin/performance/upload", json={"rows": []})
    assert response.status_code == 422


def test_upload_debts(client):
    response = client.post(
        "/api/v1/admin/debts/upload",
        json={"rows": [{"riderCode": "R2", "amount": 40}]},
    )
    assert response.status_code == 200
    debts = client.get("/api/v1/supervisors/S1/debts").json()["data"]
    assert Decimal(debts["totalAmount"]) == 240


def test_rider_upsert_and_unassign(client, store):
    response = client.put("/api/v1/admin/riders/R3", json={"name": "Fahad", "supervisorCode": "S1"})
    assert response.status_code == 200
    assert response.json()["data"]["created"] is False
    riders = client.get("/api/v1/supervisors/S1/riders").json()["data"]["riders"]
    assert {rider["code"] for rider in riders} == {"R1", "R2", "R3"}

    response = client.delete("/api/v1/admin/riders/R3")
    assert response.status_code == 200
    assert store.sheets[RIDERS.title][3][3] == ""
    assert client.delete("/api/v1/admin/riders/R404").status_code == 404


def test_supervisor_upsert_and_delete(client):
    response = client.put("/api/v1/admin/supervisors/S3", json={"name": "Nora", "region": "Abha"})
    assert response.status_code == 200
    assert response.json()["data"]["created"] is True
    assert client.get("/api/v1/admin/salary-config/S3").json()["data"]["model"] == "legacy"

    assert client.delete("/api/v1/admin/supervisors/S3").status_code == 200
    assert client.get("/api/v1/admin/salary-config/S3").status_code == 404


def test_salary_config_endpoints(client):
    current = client.get("/api/v1/admin/salary-config/S1")
    assert current.status_code == 200
    assert current.json()["data"]["model"] == "fixed"
    assert current.json()["data"]["source"] == "supervisor"

    response = client.put("/api/v1/admin/salary-config/S1", json={"salaryType": "custom", "salaryAmount": 5000})
    assert response.status_code == 200
    assert response.json()["data"]["source"] == "salary_settings"
    salary = client.get("/api/v1/supervisors/S1/salary", params=JANUARY).json()["data"]
    assert Decimal(salary["totalSalary"]) == 5000


def test_overflowing_formula_still_returns_a_salary(client):
    saved = client.put(
        "/api/v1/admin/salary-config/S2",
        json={"salaryType": "commission", "commissionFormula": "((10**8)**8)**8"},
    )
    assert saved.status_code == 200
    response = client.get("/api/v1/supervisors/S2/salary", params=JANUARY)
    assert response.status_code == 200
    data = response.json()["data"]
    assert Decimal(data["commission"]) == 0
    assert any("Commission formula" in warning for warning in data["warnings"])


def test_hour_tiers_config_endpoint(client):
    response = client.put(
        "/api/v1/admin/salary-config/S2",
        json={
            "salaryType": "hourly_tiers",
            "hourTiers": [{"minHours": 0, "maxHours": 24, "ratePerOrder": 2}],
        },
    )
    assert response.status_code == 200
    assert response.json()["data"]["hourTiers"][0]["maxHours"] == 24
    salary = client.get("/api/v1/supervisors/S2/salary", params=JANUARY).json()["data"]
    assert salary["model"] == "hourly_tiers"
    assert Decimal(salary["commission"]) == 80


def test_invalid_salary_config_returns_configuration_error(client):
    response = client.put(
        "/api/v1/admin/salary-config/S1",
        json={"salaryType": "commission", "commissionFormula": "__import__('os')"},
    )
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == "invalid_configuration"
    assert payload["error"]["details"]["field"] == "commissionFormula"


def test_equipment_limits_endpoints(client):
    response = client.put(
        "/api/v1/admin/equipment-limits",
        json={"supervisorCode": "S1", "limits": {"helmet": 2}},
    )
    assert response.status_code == 200
    assert response.json()["data"]["limits"]["helmet"] == 2

    rejected = client.put(
        "/api/v1/admin/equipment-limits",
        json={"supervisorCode": "S1", "limits": {"helmet": -4}},
    )
    assert rejected.status_code == 400
    assert rejected.json()["error"]["code"] == "invalid_configuration"

    listing = client.get("/api/v1/admin/equipment-limits").json()["data"]
    assert listing == [
        {
            "supervisorCode": "S1",
            "limits": {"motorcycle_box": 0, "bicycle_box": 0, "tshirt": 0, "jacket": 0, "helmet": 2},
        }
    ]


def test_equipment_pricing_endpoints(client):
    response = client.put("/api/v1/admin/equipment-pricing", json={"prices": {"jacket": 200}})
    assert response.status_code == 200
    assert Decimal(client.get("/api/v1/admin/equipment-pricing").json()["data"]["prices"]["jacket"]) == 200

    rejected = client.put("/api/v1/admin/equipment-pricing", json={"prices": {"jacket": "free"}})
    assert rejected.status_code == 400


def test_cache_invalidate_endpoint(client):
    client.get("/api/v1/supervisors/S1/performance", params=JANUARY)
    response = client.post("/api/v1/admin/cache/invalidate", json={"tag": "performance"})
    assert response.status_code == 200
    assert response.json()["data"]["invalidated"] >= 1
    assert client.post("/api/v1/admin/cache/invalidate", json={}).status_code == 400


def test_request_bodies_are_trimmed_and_strict(client):
    blank_name = client.put("/api/v1/admin/riders/R9", json={"name": "   "})
    assert blank_name.status_code == 422
    unknown_key = client.put("/api/v1/admin/supervisors/S1", json={"name": "Salem", "password": "x"})
    assert unknown_key.status_code == 422
    assert unknown_key.json()["error"]["code"] == "validation_error"
