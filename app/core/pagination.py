# app/core/pagination.py

import math
from dataclasses import dataclass

from fastapi import Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.schemas.common import Pagination

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PageParams:
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1, description="1-indexed page number"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, description=f"Page size (capped at {MAX_LIMIT})"),
) -> PageParams:
    return PageParams(page=page, limit=min(limit, MAX_LIMIT))


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so search terms match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains(column, term: str):
    return column.ilike(f"%{escape_like(term)}%", escape="\\")


async def paginate(session: AsyncSession, query, params: PageParams):
    """
    Runs `query` for one page and counts the full result set.
    Returns (items, Pagination).
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar_one()

    result = await session.execute(query.offset(params.offset).limit(params.limit))
    items = result.scalars().all()

    pagination = Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        pages=math.ceil(total / params.limit) if params.limit else 0,
    )
    return items, pagination
