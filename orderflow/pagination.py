"""
Pagination — offset/limit pages with a stable envelope.

    page = await paginate(session, select(CartItemRow).where(...), PageRequest(page=2, limit=20), to_cart_item)
    page.pagination  # Pagination(current=2, limit=20, records=41, pages=3)

`page` is 1-based and echoed back unchanged in `pagination.current`.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.errors import InvalidArgument

DEFAULT_LIMIT = 100


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def validate(self) -> PageRequest:
        if self.page < 1:
            raise InvalidArgument(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise InvalidArgument(f"limit must be >= 1, got {self.limit}")
        return self


@dataclass(frozen=True, slots=True)
class Pagination:
    current: int
    limit: int
    records: int
    pages: int

    @classmethod
    def of(cls, request: PageRequest, records: int) -> Pagination:
        return cls(
            current=request.page,
            limit=request.limit,
            records=records,
            pages=math.ceil(records / request.limit),
        )


@dataclass(frozen=True, slots=True)
class Page[T]:
    data: tuple[T, ...]
    pagination: Pagination


async def paginate[R, T](
    session: AsyncSession,
    stmt: Select[tuple[R]],
    request: PageRequest,
    convert: Callable[[R], T],
) -> Page[T]:
    """Run `stmt` as one page plus a count over the same filter."""
    request.validate()

    count_stmt: Select[Any] = select(func.count()).select_from(
        stmt.order_by(None).subquery()
    )
    records = (await session.execute(count_stmt)).scalar_one()

    rows = (
        await session.execute(stmt.offset(request.offset).limit(request.limit))
    ).scalars().all()

    return Page(
        data=tuple(convert(row) for row in rows),
        pagination=Pagination.of(request, records),
    )


__all__ = ("DEFAULT_LIMIT", "PageRequest", "Pagination", "Page", "paginate")
