from __future__ import annotations

from datetime import date
from math import ceil
from typing import Generic, List, Optional, Sequence, TypeVar

from src.shared.base import BaseSchema


T = TypeVar("T")

CALCULATION_VERSION = "v1"


class Pagination(BaseSchema):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class Meta(BaseSchema):
    as_of_date: str
    source: str
    time_window: str
    calculation_version: str
    data_status: Optional[str] = None
    degraded: Optional[bool] = None
    warnings: Optional[List[str]] = None


class ResponseEnvelope(BaseSchema, Generic[T]):
    data: T
    pagination: Optional[Pagination] = None
    meta: Optional[Meta] = None


def build_meta(
    *,
    source: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    degraded: bool = False,
    warnings: Optional[List[str]] = None,
) -> Meta:
    time_window = f"{start_date.isoformat()}..{end_date.isoformat()}" if start_date and end_date else "now"
    return Meta(
        as_of_date=date.today().isoformat(),
        source=source,
        time_window=time_window,
        calculation_version=CALCULATION_VERSION,
        data_status="degraded" if degraded else "live",
        degraded=degraded,
        warnings=list(warnings) if warnings else None,
    )


def build_pagination(page: int, page_size: int, total_items: int) -> Pagination:
    total_pages = ceil(total_items / page_size) if page_size else 0
    return Pagination(
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )


def paginate_list(items: Sequence[T], page: int, page_size: int) -> tuple[list[T], Pagination]:
    total_items = len(items)
    pagination = build_pagination(page, page_size, total_items)
    start_index = (page - 1) * page_size
    end_index = start_index + page_size
    return list(items[start_index:end_index]), pagination
