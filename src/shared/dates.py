from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
COMPACT_ISO = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
NUMERIC = re.compile(r"^\d+(\.\d+)?$")

# Day zero of the spreadsheet serial calendar (Excel / Google Sheets).
SERIAL_EPOCH = date(1899, 12, 30)
MIN_YEAR = 1901
MAX_YEAR = 2099

GENERIC_FORMATS = (
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%d.%m.%Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%a %b %d %Y",
    "%a, %d %b %Y",
)


def _in_supported_years(value: date) -> bool:
    return MIN_YEAR <= value.year <= MAX_YEAR


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_number(number: float) -> Optional[date]:
    if math.isnan(number) or math.isinf(number):
        return None
    if 1 <= number < 100000:
        parsed = SERIAL_EPOCH + timedelta(days=int(number))
    elif 1_000_000_000 < number < 10_000_000_000_000:
        # Epoch milliseconds written by older exports.
        parsed = datetime.fromtimestamp(number / 1000, tz=timezone.utc).date()
    else:
        return None
    return parsed if _in_supported_years(parsed) else None


def _from_slash(match: re.Match[str]) -> Optional[date]:
    first, second, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
    month_first = _safe_date(year, first, second)
    if month_first is not None:
        return month_first
    return _safe_date(year, second, first)


def _from_generic(text: str) -> Optional[date]:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in GENERIC_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt).date()
                break
            except ValueError:
                continue
    if parsed is None or not _in_supported_years(parsed):
        return None
    return parsed


def parse_sheet_date(value: Any) -> Optional[date]:
    """Interpret a spreadsheet date cell, or return ``None`` when unparseable.

    Order: native date values, spreadsheet serial numbers, ``YYYY-MM-DD``
    prefix, compact ``YYYYMMDD``, ``D/D/YYYY`` (month-first, falling back to
    day-first when month-first does not round-trip), numeric strings, then
    generic formats limited to years 1901-2099.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return _from_number(float(value))

    text = str(value).strip()
    if not text:
        return None

    match = ISO_PREFIX.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = COMPACT_ISO.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = SLASH_DATE.match(text)
    if match:
        return _from_slash(match)

    if NUMERIC.match(text):
        return _from_number(float(text))

    return _from_generic(text)


def normalize_date(value: Any) -> Optional[str]:
    parsed = parse_sheet_date(value)
    return parsed.isoformat() if parsed else None


def month_number(value: Any) -> Optional[int]:
    """Return a bare month number cell (``"3"``, ``3``) as an int in 1..12."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text.isdigit():
        return None
    month = int(text)
    return month if 1 <= month <= 12 else None
