import math
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode
from sqlalchemy import func, select
from sqlalchemy.sql import Select
from parkes.errors import RestError
from parkes.schemas.response import Page, PaginationMeta

DEFAULT_SORT = "id"
DEFAULT_ORDER = "DESC"


def _int_param(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def build_find_all_query(ctx, query: Select, model) -> Select:
    """Add ordering from ?sort= and ?order= to a list query"""
    sort = ctx.query.get("sort") or DEFAULT_SORT
    order = (ctx.query.get("order") or DEFAULT_ORDER).upper()

    if order not in ("ASC", "DESC"):
        raise RestError(
            status=400,
            code="invalid order",
            message=f"Cannot order by {order}, use ASC or DESC",
        )
    if sort.startswith("_") or sort not in model.__table__.columns:
        raise RestError(
            status=400, code="invalid sort", message=f"Cannot sort by {sort}"
        )

    column = getattr(model, sort)
    return query.order_by(column.desc() if order == "DESC" else column.asc()).distinct()


async def paginate(ctx, session, query: Select, default_page_length: int) -> Page:
    limit = _int_param(ctx.query.get("limit")) or default_page_length
    offset = _int_param(ctx.query.get("offset")) or 0
    if limit < 0 or offset < 0:
        raise RestError(
            status=400,
            code="invalid pagination",
            message="limit and offset must not be negative",
        )

    # count query
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    result = await session.execute(query.offset(offset).limit(limit))
    data = list(result.scalars().unique().all())

    return format_paginate(data, total, limit, offset, ctx.path, ctx.query)


def format_paginate(
    data: List[Any],
    total: int,
    limit: int,
    offset: int,
    slug: str,
    query: Dict[str, Any],
) -> Page:
    offset = int(offset)
    pages = math.ceil(total / limit)

    new_query = dict(query)
    new_query["limit"] = limit

    prev_url = None
    next_url = None

    if offset > 0:
        new_query["offset"] = max(offset - limit, 0)
        prev_url = f"{slug}?{urlencode(new_query, doseq=True)}"

    if total > offset + limit:
        new_query["offset"] = offset + limit
        next_url = f"{slug}?{urlencode(new_query, doseq=True)}"

    return Page(
        collection=data,
        pagination=PaginationMeta(
            total=total,
            pages=pages,
            prev_url=prev_url,
            next_url=next_url,
            offset=offset,
            limit=limit,
        ),
    )
