from __future__ import annotations

from functools import lru_cache

from src.core.cache import RecordCache
from src.core.config import get_settings
from src.core.sheets import SheetsClient
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


@lru_cache
def get_record_cache() -> RecordCache:
    return RecordCache(default_ttl=get_settings().cache_default_ttl_seconds)


@lru_cache
def get_sheets_client() -> SheetsClient:
    return SheetsClient()


@lru_cache
def get_riders_repository() -> RidersRepository:
    return RidersRepository(
        client=get_sheets_client(),
        cache=get_record_cache(),
        ttl=get_settings().riders_cache_ttl_seconds,
    )


@lru_cache
def get_performance_repository() -> PerformanceRepository:
    return PerformanceRepository(
        client=get_sheets_client(),
        cache=get_record_cache(),
        ttl=get_settings().performance_cache_ttl_seconds,
    )


@lru_cache
def get_debts_repository() -> DebtsRepository:
    return DebtsRepository(client=get_sheets_client(), cache=get_record_cache())


@lru_cache
def get_supervisors_repository() -> SupervisorsRepository:
    return SupervisorsRepository(client=get_sheets_client(), cache=get_record_cache())


@lru_cache
def get_ledger_repository() -> LedgerRepository:
    return LedgerRepository(client=get_sheets_client(), cache=get_record_cache())


@lru_cache
def get_rider_requests_repository() -> RiderRequestsRepository:
    return RiderRequestsRepository(client=get_sheets_client(), cache=get_record_cache())


@lru_cache
def get_compensation_config_repository() -> CompensationConfigRepository:
    return CompensationConfigRepository()


def get_cache_invalidation_service() -> CacheInvalidationService:
    return CacheInvalidationService(cache=get_record_cache())


def get_ownership_service() -> OwnershipService:
    return OwnershipService(
        repository=get_riders_repository(),
        cache=get_record_cache(),
        ttl=get_settings().riders_cache_ttl_seconds,
    )


def get_performance_service() -> PerformanceService:
    return PerformanceService(
        ownership_service=get_ownership_service(),
        performance_repository=get_performance_repository(),
        debts_repository=get_debts_repository(),
        supervisors_repository=get_supervisors_repository(),
        riders_repository=get_riders_repository(),
        cache=get_record_cache(),
        ttl=get_settings().performance_cache_ttl_seconds,
    )


def get_compensation_service() -> CompensationService:
    return CompensationService(
        performance_service=get_performance_service(),
        supervisors_repository=get_supervisors_repository(),
        ledger_repository=get_ledger_repository(),
        config_repository=get_compensation_config_repository(),
    )


def get_admin_service() -> AdminService:
    return AdminService(
        riders_repository=get_riders_repository(),
        supervisors_repository=get_supervisors_repository(),
        performance_repository=get_performance_repository(),
        debts_repository=get_debts_repository(),
        config_repository=get_compensation_config_repository(),
        compensation_service=get_compensation_service(),
        coordinator=get_cache_invalidation_service(),
    )


def get_rider_requests_service() -> RiderRequestsService:
    return RiderRequestsService(
        requests_repository=get_rider_requests_repository(),
        riders_repository=get_riders_repository(),
        supervisors_repository=get_supervisors_repository(),
        coordinator=get_cache_invalidation_service(),
    )
