from __future__ import annotations

import logging
from typing import Optional

from src.core.cache import RecordCache

logger = logging.getLogger(__name__)

PERFORMANCE_TAG = "performance"
RIDERS_TAG = "riders"
DEBTS_TAG = "debts"
SUPERVISORS_TAG = "supervisors"
SALARY_SETTINGS_TAG = "salary_settings"


class CacheInvalidationService:
    """Tag-based invalidation over ``RecordCache`` keys.

    A tag matches every live key that contains it as a substring, so
    ``performance`` sweeps ``sheet:performance`` and every
    ``performance:{code}:{start}:{end}`` entry.
    """

    def __init__(self, cache: RecordCache) -> None:
        self.cache = cache

    def invalidate(self, tag: str) -> int:
        if not tag:
            return 0
        matched = [key for key in self.cache.keys() if tag in key]
        for key in matched:
            self.cache.clear(key)
        logger.info("Invalidated %s cache entries for tag %s", len(matched), tag)
        return len(matched)

    def performance_changed(self) -> int:
        return self.invalidate(PERFORMANCE_TAG)

    def debts_changed(self) -> int:
        return self.invalidate(DEBTS_TAG)

    def rider_changed(self, previous_code: Optional[str], new_code: Optional[str]) -> int:
        removed = self.invalidate(RIDERS_TAG)
        for code in {previous_code, new_code}:
            if code:
                removed += self.invalidate(code)
        return removed

    def supervisor_changed(self, code: str) -> int:
        return self.invalidate(SUPERVISORS_TAG) + self.invalidate(code)

    def salary_config_changed(self, code: str) -> int:
        return self.invalidate(SALARY_SETTINGS_TAG) + self.invalidate(code)

    def clear_all(self) -> int:
        removed = len(self.cache.keys())
        self.cache.clear()
        logger.info("Cleared %s cache entries", removed)
        return removed
