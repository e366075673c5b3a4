from __future__ import annotations

from typing import Any, List, Optional

from src.core.errors import NotFoundError
from src.models.records import SalaryConfigRecord, SheetRead, SupervisorRecord
from src.models.sheets import SALARY_SETTINGS, SUPERVISORS
from src.repositories.sheet_repository import SheetRepository
from src.shared.money import to_sheet_number


def _pad(row: List[Any], width: int) -> List[Any]:
    return list(row) + [""] * max(0, width - len(row))


class SupervisorsRepository(SheetRepository):
    def list_supervisors(self, fresh: bool = False) -> SheetRead:
        return self.read_sheet(SUPERVISORS, fresh=fresh)

    def get_supervisor(self, code: str, fresh: bool = False) -> Optional[SupervisorRecord]:
        for supervisor in self.list_supervisors(fresh=fresh).records:
            if supervisor.code == code:
                return supervisor
        return None

    def upsert_supervisor(self, supervisor: SupervisorRecord) -> bool:
        """Write profile columns; password and salary columns of an existing row are kept."""
        width = len(SUPERVISORS.columns)
        found = self.find_row(SUPERVISORS.title, supervisor.code)
        self.forget(SUPERVISORS)
        if found is None:
            row = _pad([], width)
        else:
            row = _pad(found[1], width)
        row[0] = supervisor.code
        row[1] = supervisor.name
        row[2] = supervisor.region
        row[3] = supervisor.email
        if supervisor.target is not None:
            row[8] = supervisor.target
        if found is None:
            self.append(SUPERVISORS.title, [row])
            return True
        self.update(SUPERVISORS.title, found[0], row)
        return False

    def delete_supervisor(self, code: str) -> None:
        """Blank the supervisor row; blank rows are ignored on read."""
        found = self.find_row(SUPERVISORS.title, code)
        if found is None:
            raise NotFoundError(f"Supervisor {code} not found")
        self.forget(SUPERVISORS)
        self.update(SUPERVISORS.title, found[0], [""] * len(SUPERVISORS.columns))

    def list_salary_configs(self, fresh: bool = False) -> SheetRead:
        return self.read_sheet(SALARY_SETTINGS, fresh=fresh)

    def get_salary_config(self, code: str, fresh: bool = False) -> Optional[SalaryConfigRecord]:
        for config in self.list_salary_configs(fresh=fresh).records:
            if config.supervisor_code == code:
                return config
        return None

    def upsert_salary_config(self, config: SalaryConfigRecord) -> bool:
        row = [
            config.supervisor_code,
            config.salary_type or "",
            to_sheet_number(config.salary_amount),
            config.commission_formula or "",
            to_sheet_number(config.receipts_percentage),
            to_sheet_number(config.supervisor_percentage),
        ]
        found = self.find_row(SALARY_SETTINGS.title, config.supervisor_code)
        self.forget(SALARY_SETTINGS)
        if found is None:
            self.append(SALARY_SETTINGS.title, [row])
            return True
        self.update(SALARY_SETTINGS.title, found[0], row)
        return False
