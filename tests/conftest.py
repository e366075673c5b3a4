from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_admin_service,
    get_compensation_service,
    get_ownership_service,
    get_performance_service,
    get_rider_requests_service,
)
from src.core.cache import RecordCache
from src.main import create_app
from src.models.sheets import ASSIGNMENT_REQUESTS, DEBTS, PERFORMANCE, RIDERS, SUPERVISORS, TERMINATION_REQUESTS
from src.repositories.compensation_config_repository import CompensationConfigRepository
from src.repositories.ledger_repository import LedgerRepository
from src.repositories.performance_repository import DebtsRepository, PerformanceRepository
from src.repositories.rider_requests_repository import RiderRequestsRepository
from src.repositories.riders_repository import RidersRepository
from src.repositories.supervisors_repository import SupervisorsRepository
from src.services.admin_service import AdminService
from src.services.cache_invalidation_service import CacheInvalidationService
from src.services.compensation_service import CompensationService
from src.services.ownership_service import OwnershipService
from src.services.performance_service import PerformanceService
from src.services.rider_requests_service import RiderRequestsService


class FakeSheetsClient:
    """In-memory spreadsheet: sheet title -> rows, row 0 being the header."""

    def __init__(self, sheets: Optional[Dict[str, List[List[Any]]]] = None) -> None:
        self.sheets: Dict[str, List[List[Any]]] = {
            title: [list(row) for row in rows] for title, rows in (sheets or {}).items()
        }
        self.failing: Set[str] = set()
        self.garbled: Set[str] = set()
        self.reads: Dict[str, int] = defaultdict(int)

    def fail(self, *titles: str) -> None:
        self.failing.update(titles)

    def garble(self, *titles: str) -> None:
        """Reads of these sheets return a body that is not JSON."""
        self.garbled.update(titles)

    def recover(self) -> None:
        self.failing.clear()
        self.garbled.clear()

    def _check(self, sheet: str) -> None:
        if sheet in self.failing or "*" in self.failing:
            raise httpx.ConnectError(f"store unavailable: {sheet}")

    def read_rows(self, sheet: str) -> List[List[Any]]:
        self._check(sheet)
        self.reads[sheet] += 1
        if sheet in self.garbled:
            json.loads("<html>quota exceeded</html>")
        return [list(row) for row in self.sheets.get(sheet, [])]

    def append_rows(self, sheet: str, rows: Sequence[Sequence[Any]]) -> int:
        self._check(sheet)
        target = self.sheets.setdefault(sheet, [[]])
        target.extend(list(row) for row in rows)
        return len(rows)

    def update_row(self, sheet: str, row_number: int, row: Sequence[Any]) -> None:
        self._check(sheet)
        target = self.sheets.setdefault(sheet, [[]])
        while len(target) < row_number:
            target.append([])
        target[row_number - 1] = list(row)

    def clear_rows(self, sheet: str, keep_header: bool = True) -> None:
        self._check(sheet)
        rows = self.sheets.get(sheet, [])
        self.sheets[sheet] = rows[:1] if keep_header else []


def scenario_sheets() -> Dict[str, List[List[Any]]]:
    """S1 (fixed 3000) owns R1 and R2; S2 (commission) owns R3."""
    return {
        RIDERS.title: [
            list(RIDERS.columns),
            ["R1", "Ahmed", "Riyadh", "S1", "Salem", "0500000001", "2023-06-01", "نشط"],
            ["R2", "Omar", "Riyadh", "S1", "Salem", "0500000002", "15/08/2023", ""],
            ["R3", "Fahad", "Jeddah", "S2", "Khalid", "0500000003", "", "active"],
        ],
        SUPERVISORS.title: [
            list(SUPERVISORS.columns),
            ["S1", "Salem", "Riyadh", "s1@example.com", "secret", "fixed", "3000", "", "200"],
            ["S2", "Khalid", "Jeddah", "s2@example.com", "secret", "commission", "", "orders * 2", ""],
        ],
        PERFORMANCE.title: [
            list(PERFORMANCE.columns),
            ["2024-01-05", "R1", "8", "1", "0", "", "10", "90%", "30"],
            ["2024-01-06", "R2", "6", "0.5", "0", "", "5", "0.8", "0"],
            ["2024-01-05", "R3", "9", "1", "0", "", "40", "95", "0"],
            ["2023-12-31", "R1", "7", "0", "0", "", "99", "80", "0"],
        ],
        DEBTS.title: [
            list(DEBTS.columns),
            ["R1", "200", "2024-01-03", "fuel"],
            ["R3", "50", "", ""],
        ],
        ASSIGNMENT_REQUESTS.title: [list(ASSIGNMENT_REQUESTS.columns)],
        TERMINATION_REQUESTS.title: [list(TERMINATION_REQUESTS.columns)],
    }


@dataclass
class Services:
    client: FakeSheetsClient
    cache: RecordCache
    ownership: OwnershipService
    performance: PerformanceService
    compensation: CompensationService
    admin: AdminService
    coordinator: CacheInvalidationService
    config_repository: CompensationConfigRepository
    rider_requests: RiderRequestsService


def build_services(client: FakeSheetsClient, config_dir: str) -> Services:
    cache = RecordCache(default_ttl=900)
    riders_repository = RidersRepository(client=client, cache=cache)
    performance_repository = PerformanceRepository(client=client, cache=cache)
    debts_repository = DebtsRepository(client=client, cache=cache)
    supervisors_repository = SupervisorsRepository(client=client, cache=cache)
    ledger_repository = LedgerRepository(client=client, cache=cache)
    config_repository = CompensationConfigRepository(config_dir=config_dir)
    ownership = OwnershipService(repository=riders_repository, cache=cache)
    performance = PerformanceService(
        ownership_service=ownership,
        performance_repository=performance_repository,
        debts_repository=debts_repository,
        supervisors_repository=supervisors_repository,
        riders_repository=riders_repository,
        cache=cache,
    )
    compensation = CompensationService(
        performance_service=performance,
        supervisors_repository=supervisors_repository,
        ledger_repository=ledger_repository,
        config_repository=config_repository,
        security_inquiry_cost=100,
    )
    coordinator = CacheInvalidationService(cache=cache)
    admin = AdminService(
        riders_repository=riders_repository,
        supervisors_repository=supervisors_repository,
        performance_repository=performance_repository,
        debts_repository=debts_repository,
        config_repository=config_repository,
        compensation_service=compensation,
        coordinator=coordinator,
    )
    rider_requests = RiderRequestsService(
        requests_repository=RiderRequestsRepository(client=client, cache=cache),
        riders_repository=riders_repository,
        supervisors_repository=supervisors_repository,
        coordinator=coordinator,
    )
    return Services(
        client=client,
        cache=cache,
        ownership=ownership,
        performance=performance,
        compensation=compensation,
        admin=admin,
        coordinator=coordinator,
        config_repository=config_repository,
        rider_requests=rider_requests,
    )


@pytest.fixture()
def store() -> FakeSheetsClient:
    return FakeSheetsClient(scenario_sheets())


@pytest.fixture()
def services(store: FakeSheetsClient, tmp_path) -> Services:
    return build_services(store, str(tmp_path / "config"))


@pytest.fixture()
def client(services: Services) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_ownership_service] = lambda: services.ownership
    app.dependency_overrides[get_performance_service] = lambda: services.performance
    app.dependency_overrides[get_compensation_service] = lambda: services.compensation
    app.dependency_overrides[get_admin_service] = lambda: services.admin
    app.dependency_overrides[get_rider_requests_service] = lambda: services.rider_requests
    return TestClient(app)
