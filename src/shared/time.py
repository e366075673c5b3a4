from __future__ import annotations

import calendar
from datetime import date
from typing import Iterator, Optional, Set, Tuple

from src.core.errors import BadRequestError


def resolve_date_range(
    start_date: Optional[date],
    end_date: Optional[date],
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> Tuple[date, date]:
    """Validate an inclusive query window.

    An explicit month (with optional year) selects that calendar month.
    Missing dates default to the first of the current month through today.
    """
    today = date.today()
    if month is not None and start_date is None and end_date is None:
        if not 1 <= month <= 12:
            raise BadRequestError("Month must be between 1 and 12")
        return month_bounds(year or today.year, month)
    start = start_date or today.replace(day=1)
    end = end_date or today
    if start > end:
        raise BadRequestError("start_date must be on or before end_date")
    return start, end


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def previous_month(value: date) -> Tuple[int, int]:
    if value.month == 1:
        return value.year - 1, 12
    return value.year, value.month - 1


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current = date.fromordinal(current.toordinal() + 1)


def months_in_range(start: date, end: date) -> Set[int]:
    months: Set[int] = set()
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.add(month)
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


def month_overlaps(month: int, start: date, end: date) -> bool:
    """A bare month number is read in the year of ``start``."""
    month_start, month_end = month_bounds(start.year, month)
    return month_start <= end and month_end >= start
