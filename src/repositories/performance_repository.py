from __future__ import annotations

from typing import Any, Sequence

from src.models.records import SheetRead
from src.models.sheets import DEBTS, PERFORMANCE
from src.repositories.sheet_repository import SheetRepository


class PerformanceRepository(SheetRepository):
    def list_performance(self, fresh: bool = False) -> SheetRead:
        return self.read_sheet(PERFORMANCE, fresh=fresh)

    def append_performance(self, rows: Sequence[Sequence[Any]]) -> int:
        self.forget(PERFORMANCE)
        return self.append(PERFORMANCE.title, rows)

    def clear_performance(self) -> None:
        self.forget(PERFORMANCE)
        self.clear(PERFORMANCE.title)


class DebtsRepository(SheetRepository):
    def list_debts(self, fresh: bool = False) -> SheetRead:
        return self.read_sheet(DEBTS, fresh=fresh)

    def append_debts(self, rows: Sequence[Sequence[Any]]) -> int:
        self.forget(DEBTS)
        return self.append(DEBTS.title, rows)

    def replace_debts(self, rows: Sequence[Sequence[Any]]) -> int:
        self.forget(DEBTS)
        self.clear(DEBTS.title)
        return self.append(DEBTS.title, rows)
