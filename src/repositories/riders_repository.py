from __future__ import annotations

from typing import Any, List, Optional, Tuple

from src.core.errors import NotFoundError
from src.models.records import RiderRecord, SheetRead
from src.models.sheets import RIDERS
from src.repositories.sheet_repository import SheetRepository
from src.shared.cells import cell, to_text

SUPERVISOR_CODE_COLUMN = 3
SUPERVISOR_NAME_COLUMN = 4


class RidersRepository(SheetRepository):
    def list_riders(self, fresh: bool = False) -> SheetRead:
        return self.read_sheet(RIDERS, fresh=fresh)

    def upsert_rider(self, rider: RiderRecord) -> Tuple[bool, Optional[str]]:
        """Write a rider row; returns ``(created, previous supervisor code)``."""
        row = [
            rider.code,
            rider.name,
            rider.region,
            rider.supervisor_code,
            rider.supervisor_name,
            rider.phone,
            rider.join_date or "",
            rider.status,
        ]
        found = self.find_row(RIDERS.title, rider.code)
        self.forget(RIDERS)
        if found is None:
            self.append(RIDERS.title, [row])
            return True, None
        row_number, existing = found
        self.update(RIDERS.title, row_number, row)
        return False, to_text(cell(existing, SUPERVISOR_CODE_COLUMN)) or None

    def unassign_rider(self, code: str) -> Optional[str]:
        """Clear the rider's supervisor columns; returns the previous supervisor code."""
        found = self.find_row(RIDERS.title, code)
        if found is None:
            raise NotFoundError(f"Rider {code} not found")
        row_number, existing = found
        row: List[Any] = list(existing) + [""] * max(0, len(RIDERS.columns) - len(existing))
        previous = to_text(row[SUPERVISOR_CODE_COLUMN]) or None
        row[SUPERVISOR_CODE_COLUMN] = ""
        row[SUPERVISOR_NAME_COLUMN] = ""
        self.forget(RIDERS)
        self.update(RIDERS.title, row_number, row)
        return previous
