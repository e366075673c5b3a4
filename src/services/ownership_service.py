from __future__ import annotations

from typing import List, Optional, Set

from src.core.cache import CacheKeys, RecordCache
from src.models.records import RiderRecord, SheetRead
from src.repositories.riders_repository import RidersRepository


class OwnershipService:
    """Resolves a supervisor code to the riders it currently owns."""

    def __init__(
        self,
        repository: RidersRepository,
        cache: RecordCache,
        ttl: Optional[float] = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.ttl = ttl

    def owned(self, supervisor_code: str, fresh: bool = False) -> SheetRead:
        code = supervisor_code.strip()
        if not code:
            return SheetRead()
        key = CacheKeys.supervisor_riders(code)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        result = self.repository.list_riders(fresh=fresh)
        owned = SheetRead(
            records=[rider for rider in result.records if rider.supervisor_code.strip() == code],
            degraded=result.degraded,
            skipped_rows=result.skipped_rows,
            warnings=list(result.warnings),
        )
        if not owned.degraded:
            self.cache.set(key, owned, self.ttl)
        return owned

    def riders_of(self, supervisor_code: str, fresh: bool = False) -> List[RiderRecord]:
        return list(self.owned(supervisor_code, fresh=fresh).records)

    def rider_codes_of(self, supervisor_code: str, fresh: bool = False) -> Set[str]:
        return {rider.code for rider in self.riders_of(supervisor_code, fresh=fresh)}
