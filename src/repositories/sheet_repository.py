from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple, TypeVar

import httpx

from src.core.cache import CacheKeys, RecordCache
from src.core.errors import UpstreamError
from src.core.sheets import SheetRow, SheetsClient
from src.models.records import SheetRead
from src.models.sheets import SheetSchema
from src.shared.cells import to_text

logger = logging.getLogger(__name__)

R = TypeVar("R")


def is_blank_row(row: Sequence[Any]) -> bool:
    return not any(to_text(value) for value in row)


class SheetRepository:
    """Typed access to sheets of the spreadsheet store.

    Reads go through ``RecordCache`` under ``sheet:{table}``. A failed or
    undecodable read is reported as a degraded, empty ``SheetRead`` and is
    never cached.
    Writes raise ``UpstreamError`` when the store rejects them.
    """

    def __init__(
        self,
        client: Optional[SheetsClient] = None,
        cache: Optional[RecordCache] = None,
        ttl: Optional[float] = None,
    ) -> None:
        self.client = client or SheetsClient()
        self.cache = cache or RecordCache()
        self.ttl = ttl

    def read_sheet(self, schema: SheetSchema[R], fresh: bool = False) -> SheetRead:
        key = CacheKeys.sheet(schema.table)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        rows = self.read_raw(schema.title)
        if rows is None:
            return SheetRead(degraded=True, warnings=[f"Sheet '{schema.table}' is unavailable"])
        records: List[R] = []
        skipped = 0
        for row in rows[1:]:
            if is_blank_row(row):
                continue
            record = schema.parse(row)
            if record is None:
                skipped += 1
                continue
            records.append(record)
        warnings: List[str] = []
        if skipped:
            logger.warning("Skipped %s malformed rows in sheet %s", skipped, schema.table)
            warnings.append(f"Skipped {skipped} malformed rows in '{schema.table}'")
        result = SheetRead(records=records, skipped_rows=skipped, warnings=warnings)
        self.cache.set(key, result, self.ttl)
        return result

    def read_raw(self, title: str) -> Optional[List[SheetRow]]:
        """Raw rows including the header; ``None`` on an unreachable store or invalid JSON."""
        try:
            return self.client.read_rows(title)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to read sheet %s: %s", title, exc)
            return None

    def find_row(self, title: str, key: str, column: int = 0) -> Optional[Tuple[int, SheetRow]]:
        """First data row whose ``column`` equals ``key``, with its 1-based sheet row number."""
        rows = self._read_for_write(title)
        for index, row in enumerate(rows[1:], start=2):
            if column < len(row) and to_text(row[column]) == key:
                return index, row
        return None

    def _read_for_write(self, title: str) -> List[SheetRow]:
        try:
            return self.client.read_rows(title)
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"Sheet '{title}' could not be read") from exc

    def append(self, title: str, rows: Sequence[Sequence[Any]]) -> int:
        try:
            return self.client.append_rows(title, rows)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Rows could not be appended to '{title}'") from exc

    def update(self, title: str, row_number: int, row: Sequence[Any]) -> None:
        try:
            self.client.update_row(title, row_number, row)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Row {row_number} of '{title}' could not be updated") from exc

    def clear(self, title: str) -> None:
        try:
            self.client.clear_rows(title, keep_header=True)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Sheet '{title}' could not be cleared") from exc

    def forget(self, schema: SheetSchema[Any]) -> None:
        self.cache.clear(CacheKeys.sheet(schema.table))
