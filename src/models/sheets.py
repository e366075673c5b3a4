from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from src.models.compensation import EQUIPMENT_KINDS
from src.models.records import (
    BonusTargetRecord,
    DebtRecord,
    EquipmentIssueRecord,
    LedgerEntryRecord,
    PerformanceRecord,
    PeriodCell,
    RiderRecord,
    RiderRequestKind,
    RiderRequestRecord,
    SalaryConfigRecord,
    SecurityInquiryRecord,
    SupervisorRecord,
)
from src.shared.cells import (
    cell,
    is_absent,
    to_float,
    to_non_negative_float,
    to_non_negative_int,
    to_optional_text,
    to_percentage,
    to_text,
)
from src.shared.dates import month_number, normalize_date, parse_sheet_date
from src.shared.money import to_decimal, to_non_negative_decimal

R = TypeVar("R")
RowParser = Callable[[Sequence[Any]], Optional[R]]


@dataclass(frozen=True)
class SheetSchema(Generic[R]):
    """Positional layout of one logical table and its coercion step.

    ``parse`` returns ``None`` for rows that carry no record (blank key
    column, unparseable date); it never raises on malformed cells.
    """

    table: str
    title: str
    columns: Tuple[str, ...]
    parse: RowParser[R]


def _parse_rider(row: Sequence[Any]) -> Optional[RiderRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    join_raw = to_text(cell(row, 6))
    return RiderRecord(
        code=code,
        name=to_text(cell(row, 1)),
        region=to_text(cell(row, 2)),
        supervisor_code=to_text(cell(row, 3)),
        supervisor_name=to_text(cell(row, 4)),
        phone=to_text(cell(row, 5)),
        join_date=normalize_date(join_raw) or (join_raw or None),
        status=to_text(cell(row, 7)),
    )


def _parse_performance(row: Sequence[Any]) -> Optional[PerformanceRecord]:
    rider_code = to_text(cell(row, 1))
    record_date = parse_sheet_date(cell(row, 0))
    if not rider_code or record_date is None:
        return None
    absence = to_text(cell(row, 5))
    return PerformanceRecord(
        record_date=record_date,
        rider_code=rider_code,
        hours=to_non_negative_float(cell(row, 2)),
        break_time=to_float(cell(row, 3)),
        delay=to_float(cell(row, 4)),
        absence=absence,
        is_absent=is_absent(absence),
        orders=to_non_negative_int(cell(row, 6)),
        acceptance=to_percentage(cell(row, 7)),
        wallet=to_decimal(cell(row, 8)),
    )


def _parse_debt(row: Sequence[Any]) -> Optional[DebtRecord]:
    rider_code = to_text(cell(row, 0))
    if not rider_code:
        return None
    return DebtRecord(
        rider_code=rider_code,
        amount=to_non_negative_decimal(cell(row, 1)),
        on_date=parse_sheet_date(cell(row, 2)),
        notes=to_optional_text(cell(row, 3)),
    )


def _parse_supervisor(row: Sequence[Any]) -> Optional[SupervisorRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    amount_text = to_text(cell(row, 6))
    target_text = to_text(cell(row, 8))
    return SupervisorRecord(
        code=code,
        name=to_text(cell(row, 1)),
        region=to_text(cell(row, 2)),
        email=to_text(cell(row, 3)),
        salary_type=to_optional_text(cell(row, 5)),
        salary_amount=to_decimal(amount_text, default=None),
        commission_formula=to_optional_text(cell(row, 7)),
        target=to_non_negative_int(target_text) if target_text else None,
    )


def _parse_salary_config(row: Sequence[Any]) -> Optional[SalaryConfigRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    amount_text = to_text(cell(row, 2))
    return SalaryConfigRecord(
        supervisor_code=code,
        salary_type=to_optional_text(cell(row, 1)),
        salary_amount=to_decimal(amount_text, default=None),
        commission_formula=to_optional_text(cell(row, 3)),
        receipts_percentage=to_decimal(cell(row, 4), default=None),
        supervisor_percentage=to_decimal(cell(row, 5), default=None),
    )


def parse_period_cell(value: Any) -> PeriodCell:
    raw = to_optional_text(value)
    if raw is None:
        return PeriodCell()
    month = month_number(raw)
    if month is not None:
        return PeriodCell(month=month, raw=raw)
    return PeriodCell(on_date=parse_sheet_date(value), raw=raw)


def _parse_advance(row: Sequence[Any]) -> Optional[LedgerEntryRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    return LedgerEntryRecord(
        supervisor_code=code,
        period=parse_period_cell(cell(row, 1)),
        amount=to_decimal(cell(row, 2)),
    )


def _parse_deduction(row: Sequence[Any]) -> Optional[LedgerEntryRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    return LedgerEntryRecord(
        supervisor_code=code,
        period=parse_period_cell(cell(row, 1)),
        reason=to_optional_text(cell(row, 2)),
        amount=to_decimal(cell(row, 3)),
    )


def _parse_equipment_issue(row: Sequence[Any]) -> Optional[EquipmentIssueRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    quantities = tuple(
        (kind, to_non_negative_int(cell(row, 2 + index))) for index, kind in enumerate(EQUIPMENT_KINDS)
    )
    return EquipmentIssueRecord(
        supervisor_code=code,
        period=parse_period_cell(cell(row, 1)),
        quantities=quantities,
    )


def _parse_bonus_target(row: Sequence[Any]) -> Optional[BonusTargetRecord]:
    code = to_text(cell(row, 0))
    if not code:
        return None
    return BonusTargetRecord(
        supervisor_code=code,
        month=month_number(cell(row, 1)),
        bonus=to_decimal(cell(row, 4)),
    )


def parse_security_inquiry(row: Sequence[Any], supervisor_code: str) -> Optional[SecurityInquiryRecord]:
    """Inquiry rows name the supervisor in any column; the date sits in column 0."""
    if not any(to_text(value) == supervisor_code for value in row):
        return None
    return SecurityInquiryRecord(supervisor_code=supervisor_code, inquiry_date=parse_sheet_date(cell(row, 0)))


RIDERS = SheetSchema(
    table="riders",
    title="المناديب",
    columns=("code", "name", "region", "supervisor_code", "supervisor_name", "phone", "join_date", "status"),
    parse=_parse_rider,
)
PERFORMANCE = SheetSchema(
    table="performance",
    title="البيانات اليومية",
    columns=("date", "rider_code", "hours", "break", "delay", "absence", "orders", "acceptance", "wallet"),
    parse=_parse_performance,
)
DEBTS = SheetSchema(
    table="debts",
    title="الديون",
    columns=("rider_code", "amount", "date", "notes"),
    parse=_parse_debt,
)
SUPERVISORS = SheetSchema(
    table="supervisors",
    title="المشرفين",
    columns=(
        "code",
        "name",
        "region",
        "email",
        "password",
        "salary_type",
        "salary_amount",
        "commission_formula",
        "target",
    ),
    parse=_parse_supervisor,
)
SALARY_SETTINGS = SheetSchema(
    table="salary_settings",
    title="إعدادات_الرواتب",
    columns=(
        "supervisor_code",
        "salary_type",
        "salary_amount",
        "commission_formula",
        "receipts_percentage",
        "supervisor_percentage",
    ),
    parse=_parse_salary_config,
)
ADVANCES = SheetSchema(
    table="advances",
    title="السلف",
    columns=("supervisor_code", "period", "amount"),
    parse=_parse_advance,
)
DEDUCTIONS = SheetSchema(
    table="deductions",
    title="الخصومات",
    columns=("supervisor_code", "period", "reason", "amount"),
    parse=_parse_deduction,
)
EQUIPMENT_ISSUES = SheetSchema(
    table="equipment",
    title="المعدات",
    columns=("supervisor_code", "period") + EQUIPMENT_KINDS,
    parse=_parse_equipment_issue,
)
BONUS_TARGETS = SheetSchema(
    table="targets",
    title="الأهداف",
    columns=("supervisor_code", "month", "target_hours", "achieved_hours", "bonus"),
    parse=_parse_bonus_target,
)
SECURITY_INQUIRIES_TITLE = "استعلام أمني"


def _parse_rider_request(
    row: Sequence[Any], row_number: int, kind: RiderRequestKind, status_column: int
) -> Optional[RiderRequestRecord]:
    supervisor_code = to_text(cell(row, 0))
    rider_code = to_text(cell(row, 2))
    if not supervisor_code or not rider_code:
        return None
    return RiderRequestRecord(
        request_id=row_number,
        kind=kind,
        supervisor_code=supervisor_code,
        supervisor_name=to_text(cell(row, 1)),
        rider_code=rider_code,
        rider_name=to_text(cell(row, 3)),
        reason=to_optional_text(cell(row, 4)) if kind is RiderRequestKind.TERMINATION else None,
        status=to_text(cell(row, status_column)) or "pending",
        request_date=to_optional_text(cell(row, status_column + 1)),
        approval_date=to_optional_text(cell(row, status_column + 2)),
        approved_by=to_optional_text(cell(row, status_column + 3)),
    )


@dataclass(frozen=True)
class RequestSheet:
    """Layout of a rider-request sheet; the reason column shifts the status block."""

    kind: RiderRequestKind
    title: str
    columns: Tuple[str, ...]

    @property
    def status_column(self) -> int:
        return self.columns.index("status")

    def parse(self, row: Sequence[Any], row_number: int) -> Optional[RiderRequestRecord]:
        return _parse_rider_request(row, row_number, self.kind, self.status_column)

    def to_row(self, record: RiderRequestRecord) -> List[Any]:
        values = {
            "supervisor_code": record.supervisor_code,
            "supervisor_name": record.supervisor_name,
            "rider_code": record.rider_code,
            "rider_name": record.rider_name,
            "reason": record.reason or "",
            "status": record.status,
            "request_date": record.request_date or "",
            "approval_date": record.approval_date or "",
            "approved_by": record.approved_by or "",
        }
        return [values[column] for column in self.columns]


_REQUEST_HEAD = ("supervisor_code", "supervisor_name", "rider_code", "rider_name")
_REQUEST_TAIL = ("status", "request_date", "approval_date", "approved_by")

ASSIGNMENT_REQUESTS = RequestSheet(
    kind=RiderRequestKind.ASSIGNMENT,
    title="طلبات_التعيين",
    columns=_REQUEST_HEAD + _REQUEST_TAIL,
)
TERMINATION_REQUESTS = RequestSheet(
    kind=RiderRequestKind.TERMINATION,
    title="طلبات_الإقالة",
    columns=_REQUEST_HEAD + ("reason",) + _REQUEST_TAIL,
)
REQUEST_SHEETS = {sheet.kind: sheet for sheet in (ASSIGNMENT_REQUESTS, TERMINATION_REQUESTS)}
