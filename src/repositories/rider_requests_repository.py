from __future__ import annotations

import logging
from typing import List, Optional

from src.core.errors import NotFoundError
from src.models.records import RiderRequestKind, RiderRequestRecord, SheetRead
from src.models.sheets import REQUEST_SHEETS
from src.repositories.sheet_repository import SheetRepository, is_blank_row

logger = logging.getLogger(__name__)


class RiderRequestsRepository(SheetRepository):
    """Assignment and termination requests, one sheet per kind.

    Requests are read uncached; the admin decides on the row it just listed.
    """

    def list_requests(self, kind: RiderRequestKind) -> SheetRead:
        sheet = REQUEST_SHEETS[kind]
        rows = self.read_raw(sheet.title)
        if rows is None:
            return SheetRead(degraded=True, warnings=[f"Sheet '{sheet.title}' is unavailable"])
        records: List[RiderRequestRecord] = []
        skipped = 0
        for row_number, row in enumerate(rows[1:], start=2):
            if is_blank_row(row):
                continue
            record = sheet.parse(row, row_number)
            if record is None:
                skipped += 1
                continue
            records.append(record)
        warnings: List[str] = []
        if skipped:
            logger.warning("Skipped %s malformed %s requests", skipped, kind.value)
            warnings.append(f"Skipped {skipped} malformed rows in '{sheet.title}'")
        return SheetRead(records=records, skipped_rows=skipped, warnings=warnings)

    def get_request(self, kind: RiderRequestKind, request_id: int) -> RiderRequestRecord:
        sheet = REQUEST_SHEETS[kind]
        rows = self._read_for_write(sheet.title)
        record = None
        if 2 <= request_id <= len(rows):
            record = sheet.parse(rows[request_id - 1], request_id)
        if record is None:
            raise NotFoundError(f"{kind.value.capitalize()} request {request_id} not found")
        return record

    def add_request(self, record: RiderRequestRecord) -> RiderRequestRecord:
        """Append a request; the header row is written first on an empty sheet."""
        sheet = REQUEST_SHEETS[record.kind]
        rows = self._read_for_write(sheet.title)
        payload = [sheet.to_row(record)]
        if not rows:
            payload.insert(0, list(sheet.columns))
        row_number = max(len(rows), 1) + 1
        self.append(sheet.title, payload)
        return record.model_copy(update={"request_id": row_number})

    def save_request(self, record: RiderRequestRecord) -> None:
        sheet = REQUEST_SHEETS[record.kind]
        self.update(sheet.title, record.request_id, sheet.to_row(record))


def find_pending(
    requests: List[RiderRequestRecord], supervisor_code: str, rider_code: str
) -> Optional[RiderRequestRecord]:
    for request in requests:
        if request.is_pending and request.supervisor_code == supervisor_code and request.rider_code == rider_code:
            return request
    return None
