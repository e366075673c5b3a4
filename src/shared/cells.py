from __future__ import annotations

import math
from typing import Any, Optional, Sequence

ABSENT_MARKERS = frozenset({"نعم", "1", "yes"})
PERCENT_SIGNS = ("%", "٪")


def cell(row: Sequence[Any], index: int) -> Any:
    if index < len(row):
        return row[index]
    return None


def to_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def to_optional_text(value: Any) -> Optional[str]:
    text = to_text(value)
    return text or None


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_int(value: Any, default: int = 0) -> int:
    number = to_float(value, default=float(default))
    return int(number)


def to_non_negative_float(value: Any) -> float:
    return max(to_float(value), 0.0)


def to_non_negative_int(value: Any) -> int:
    return max(to_int(value), 0)


def to_percentage(value: Any) -> float:
    """Acceptance-style cell to a 0-100 number; malformed input is 0."""
    if isinstance(value, str):
        text = value.strip()
        for sign in PERCENT_SIGNS:
            text = text.replace(sign, "")
        number = to_float(text)
    else:
        number = to_float(value)
    if 0 < number <= 1:
        number *= 100
    return min(max(number, 0.0), 100.0)


def is_absent(value: Any) -> bool:
    return to_text(value).lower() in ABSENT_MARKERS
