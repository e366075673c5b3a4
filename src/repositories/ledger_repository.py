from __future__ import annotations

from typing import List

from src.core.cache import CacheKeys
from src.models.records import SecurityInquiryRecord, SheetRead
from src.models.sheets import (
    ADVANCES,
    BONUS_TARGETS,
    DEDUCTIONS,
    EQUIPMENT_ISSUES,
    SECURITY_INQUIRIES_TITLE,
    parse_security_inquiry,
)
from src.repositories.sheet_repository import SheetRepository, is_blank_row


SECURITY_INQUIRIES_TABLE = "security_inquiries"


class LedgerRepository(SheetRepository):
    """Supervisor ledgers: advances, deductions, equipment, inquiries and bonus targets."""

    def list_advances(self, code: str, fresh: bool = False) -> SheetRead:
        return self._owned(self.read_sheet(ADVANCES, fresh=fresh), code)

    def list_deductions(self, code: str, fresh: bool = False) -> SheetRead:
        return self._owned(self.read_sheet(DEDUCTIONS, fresh=fresh), code)

    def list_equipment_issues(self, code: str, fresh: bool = False) -> SheetRead:
        return self._owned(self.read_sheet(EQUIPMENT_ISSUES, fresh=fresh), code)

    def list_bonus_targets(self, code: str, fresh: bool = False) -> SheetRead:
        return self._owned(self.read_sheet(BONUS_TARGETS, fresh=fresh), code)

    def list_security_inquiries(self, code: str, fresh: bool = False) -> SheetRead:
        key = CacheKeys.sheet(SECURITY_INQUIRIES_TABLE)
        rows = None if fresh else self.cache.get(key)
        if rows is None:
            rows = self.read_raw(SECURITY_INQUIRIES_TITLE)
            if rows is None:
                return SheetRead(degraded=True, warnings=[f"Sheet '{SECURITY_INQUIRIES_TABLE}' is unavailable"])
            self.cache.set(key, rows, self.ttl)
        records: List[SecurityInquiryRecord] = []
        for row in rows[1:]:
            if is_blank_row(row):
                continue
            record = parse_security_inquiry(row, code)
            if record is not None:
                records.append(record)
        return SheetRead(records=records)

    @staticmethod
    def _owned(result: SheetRead, code: str) -> SheetRead:
        return SheetRead(
            records=[record for record in result.records if record.supervisor_code == code],
            degraded=result.degraded,
            skipped_rows=result.skipped_rows,
            warnings=list(result.warnings),
        )
