from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

ZERO = Decimal("0")
CENT = Decimal("0.01")
# Cells beyond this are treated as unreadable; quantizing them would overflow the context.
MAX_AMOUNT = Decimal("1e15")

Number = Union[Decimal, int, float]


def to_decimal(value: Any, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """Money cell to ``Decimal``; blanks, text and non-finite values give ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        number = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return default
        try:
            number = Decimal(text)
        except InvalidOperation:
            return default
    if not number.is_finite() or abs(number) >= MAX_AMOUNT:
        return default
    return number


def to_non_negative_decimal(value: Any) -> Decimal:
    return max(to_decimal(value) or ZERO, ZERO)


def quantize(value: Number) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def total(values: Iterable[Decimal]) -> Decimal:
    return quantize(sum(values, ZERO))


def to_sheet_number(value: Any) -> Any:
    """Cell payload for the Sheets API, which only accepts JSON numbers."""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value
