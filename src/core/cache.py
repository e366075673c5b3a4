from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class _CacheEntry:
    value: Any
    stored_at: float
    ttl: float


class RecordCache:
    """In-process key/value store with per-entry TTL.

    Entries expire lazily: a read past the TTL evicts the entry and reports a
    miss. There is no sweeper thread; tag-based invalidation enumerates
    ``keys()`` and clears what matches.
    """

    def __init__(self, default_ttl: float = 900.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = Lock()

    def _is_expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.stored_at > entry.ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        entry = _CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def keys(self) -> List[str]:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
            return list(self._entries.keys())


class CacheKeys:
    @staticmethod
    def sheet(table: str) -> str:
        return f"sheet:{table}"

    @staticmethod
    def supervisor_riders(supervisor_code: str) -> str:
        return f"riders:{supervisor_code}"

    @staticmethod
    def performance(supervisor_code: str, start: str, end: str) -> str:
        return f"performance:{supervisor_code}:{start}:{end}"

    @staticmethod
    def debts(supervisor_code: str) -> str:
        return f"debts:{supervisor_code}"
