from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ACTIVE_STATUSES = frozenset({"نشط", "active"})

T = TypeVar("T")


class FrozenRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class RiderRecord(FrozenRecord):
    code: str
    name: str = ""
    region: str = ""
    supervisor_code: str = ""
    supervisor_name: str = ""
    phone: str = ""
    join_date: Optional[str] = None
    status: str = ""

    @property
    def is_active(self) -> bool:
        return not self.status or self.status.lower() in ACTIVE_STATUSES


class PerformanceRecord(FrozenRecord):
    record_date: date
    rider_code: str
    hours: float = 0.0
    break_time: float = 0.0
    delay: float = 0.0
    absence: str = ""
    is_absent: bool = False
    orders: int = 0
    acceptance: float = 0.0
    wallet: Decimal = Decimal("0")


class DebtRecord(FrozenRecord):
    rider_code: str
    amount: Decimal = Decimal("0")
    on_date: Optional[date] = None
    notes: Optional[str] = None


class SupervisorRecord(FrozenRecord):
    code: str
    name: str = ""
    region: str = ""
    email: str = ""
    salary_type: Optional[str] = None
    salary_amount: Optional[Decimal] = None
    commission_formula: Optional[str] = None
    target: Optional[int] = None


class SalaryConfigRecord(FrozenRecord):
    """One salary-settings row.

    ``commission_formula`` holds an expression, or hour tiers as JSON for the
    hourly-tier model. The two percentages drive the receipts-share model.
    """

    supervisor_code: str
    salary_type: Optional[str] = None
    salary_amount: Optional[Decimal] = None
    commission_formula: Optional[str] = None
    receipts_percentage: Optional[Decimal] = None
    supervisor_percentage: Optional[Decimal] = None


class PeriodCell(FrozenRecord):
    """A ledger cell holding either a calendar date or a bare month number."""

    on_date: Optional[date] = None
    month: Optional[int] = None
    raw: Optional[str] = None


class LedgerEntryRecord(FrozenRecord):
    supervisor_code: str
    period: PeriodCell
    amount: Decimal = Decimal("0")
    reason: Optional[str] = None


class EquipmentIssueRecord(FrozenRecord):
    supervisor_code: str
    period: PeriodCell
    quantities: Tuple[Tuple[str, int], ...] = ()


class SecurityInquiryRecord(FrozenRecord):
    supervisor_code: str
    inquiry_date: Optional[date] = None


class BonusTargetRecord(FrozenRecord):
    supervisor_code: str
    month: Optional[int] = None
    bonus: Decimal = Decimal("0")


class SheetRead(BaseModel, Generic[T]):
    """Typed rows read from one sheet.

    ``degraded`` marks a collaborator failure: the rows are empty because the
    sheet could not be read, not because it has no data.
    """

    records: List[T] = Field(default_factory=list)
    degraded: bool = False
    skipped_rows: int = 0
    warnings: List[str] = Field(default_factory=list)


class PerformanceRecordSet(BaseModel):
    """Owned, range-filtered performance rows for one supervisor."""

    supervisor_code: str
    start_date: date
    end_date: date
    riders: List[RiderRecord] = Field(default_factory=list)
    records: List[PerformanceRecord] = Field(default_factory=list)
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


class RiderRequestKind(str, Enum):
    ASSIGNMENT = "assignment"
    TERMINATION = "termination"


class RiderRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RiderRequestRecord(FrozenRecord):
    """A supervisor's request to take on or release a rider.

    ``request_id`` is the sheet row number of the request (header is row 1).
    """

    request_id: int
    kind: RiderRequestKind
    supervisor_code: str
    supervisor_name: str = ""
    rider_code: str
    rider_name: str = ""
    reason: Optional[str] = None
    status: str = RiderRequestStatus.PENDING.value
    request_date: Optional[str] = None
    approval_date: Optional[str] = None
    approved_by: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RiderRequestStatus.PENDING.value
