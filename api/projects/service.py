"""
Project listing orchestration.

Sorting has two execution paths, picked once per request from the resolved sort key:
- stored keys (columns): filters, ORDER BY and LIMIT/OFFSET run in Postgres
- derived keys (monthly_/yearly_ rollups): Postgres filters, the match set is
  loaded with its monthly snapshots, rollups are computed here, then sorted
  and sliced in memory

Both paths share the same filters, page range and response envelope.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable
from uuid import UUID

from fastapi import HTTPException

from . import mapping, query, repository

DEFAULT_DERIVED_SORT_MAX_ROWS = 5000

DEFAULT_COMMENT_LIMIT = 20
MAX_COMMENT_LIMIT = 100

# Derived sort key -> field of the normalized row.
DERIVED_SORT_KEYS = {
    "monthly_view_count": "monthlyViewCount",
    "monthly_like_count": "monthlyLikeCount",
    "yearly_view_count": "yearlyViewCount",
    "yearly_like_count": "yearlyLikeCount",
}

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def derived_sort_max_rows() -> int | None:
    """
    Upper bound on rows loaded for in-memory sorting. 0 or less disables it.
    """
    value = _env_int("PROJECT_DERIVED_SORT_MAX_ROWS", DEFAULT_DERIVED_SORT_MAX_ROWS)
    return value if value > 0 else None


@dataclass(frozen=True)
class PageRows:
    rows: list[dict[str, Any]]
    total: int


async def _stored_sort(
    *,
    include: frozenset[str],
    filters: query.Filters,
    sort: query.SortSpec,
    page: query.PageRange,
    current_user_id: str | None,
) -> PageRows:
    raw_rows = await repository.fetch_page(
        select_sql=query.build_select(include),
        filters=filters,
        order_sql=query.order_clause(sort),
        limit=page.limit,
        offset=page.start,
    )
    if raw_rows:
        total = int(raw_rows[0].get("total_count") or 0)
    elif page.start > 0:
        # Past the last page: the window count has no row to ride on.
        total = await repository.count_matching(filters)
    else:
        total = 0

    rows = [
        mapping.map_project_row(row, include, current_user_id=current_user_id)
        for row in raw_rows
    ]
    return PageRows(rows=rows, total=total)


async def _derived_sort(
    *,
    include: frozenset[str],
    filters: query.Filters,
    sort: query.SortSpec,
    page: query.PageRange,
    current_user_id: str | None,
) -> PageRows:
    max_rows = derived_sort_max_rows()
    raw_rows = await repository.fetch_matching(
        select_sql=query.build_select(include, with_stats=True),
        filters=filters,
        max_rows=max_rows,
    )
    if max_rows is not None and len(raw_rows) > max_rows:
        matched = int(raw_rows[0].get("total_count") or len(raw_rows))
        logger.warning(
            "derived_sort_rejected order_by=%s matched=%s max_rows=%s",
            sort.field,
            matched,
            max_rows,
        )
        raise HTTPException(
            status_code=422,
            detail=(
                f"Too many matching projects ({matched}) to sort by {sort.field}; "
                f"the limit is {max_rows}. Narrow the filters."
            ),
        )

    rows = [
        mapping.map_project_row(row, include, with_stats=True, current_user_id=current_user_id)
        for row in raw_rows
    ]

    # Python's sort is stable, also with reverse=True: ties keep projectId order.
    metric = DERIVED_SORT_KEYS[sort.field]
    rows.sort(key=lambda r: r["projectId"] or "")
    rows.sort(key=lambda r: r.get(metric) or 0, reverse=not sort.ascending)

    return PageRows(rows=rows[page.start : page.end + 1], total=len(rows))


Strategy = Callable[..., Awaitable[PageRows]]

_STRATEGIES: dict[bool, Strategy] = {
    False: _stored_sort,
    True: _derived_sort,
}


def select_strategy(sort: query.SortSpec) -> Strategy:
    return _STRATEGIES[sort.derived]


async def list_projects(
    params: query.ProjectQuery,
    *,
    current_user_id: str | None = None,
) -> dict[str, Any]:
    include = query.known_relations(params.include)
    sort = query.resolve_sort(params.order_by, params.order)
    page = query.calc_range(params.page, params.page_size)
    filters = query.build_filters(params)

    strategy = select_strategy(sort)
    result = await strategy(
        include=include,
        filters=filters,
        sort=sort,
        page=page,
        current_user_id=current_user_id,
    )
    logger.info(
        "projects_listed strategy=%s order_by=%s order=%s page=%s page_size=%s total=%s returned=%s",
        "derived" if sort.derived else "stored",
        sort.field,
        sort.order,
        page.page,
        page.size,
        result.total,
        len(result.rows),
    )

    return {
        "meta": {
            "page": page.page,
            "pageSize": page.size,
            "total": result.total,
            "totalPages": query.total_pages(result.total, page.size),
            "sort": {"orderBy": sort.field, "order": sort.order},
        },
        "data": result.rows,
    }


async def get_project_details(
    project_id: UUID,
    *,
    include: frozenset[str] = query.DEFAULT_INCLUDE,
    current_user_id: str | None = None,
) -> dict[str, Any]:
    include = query.known_relations(include)
    row = await repository.get_project(project_id, select_sql=query.build_select(include))
    if row is None:
        raise HTTPException(status_code=404, detail="Project not found.")

    project = mapping.map_project_row(row, include, current_user_id=current_user_id)

    related: list[dict[str, Any]] = []
    category_ids = [c["categoryId"] for c in project.get("categories", []) if c.get("categoryId")]
    if category_ids:
        related_rows = await repository.list_related_projects(project_id, category_ids=category_ids)
        related = [mapping.map_related_project(r) for r in related_rows]

    return {**project, "relatedProjects": related}


async def list_user_projects(
    user_id: UUID,
    *,
    include: frozenset[str] = query.DEFAULT_INCLUDE,
) -> dict[str, Any]:
    include = query.known_relations(include)
    rows = await repository.list_user_projects(user_id, select_sql=query.build_select(include))
    return {
        "data": [
            mapping.map_project_row(row, include, current_user_id=str(user_id))
            for row in rows
        ]
    }


def _cursor(value: Any) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, (datetime, date)) else str(value)


async def list_project_comments(
    project_id: UUID,
    *,
    limit: int | None = None,
    before: datetime | None = None,
) -> dict[str, Any]:
    """
    One page of comments, newest first. `nextCursor` is set only when the page
    is full; pass it back as `before` to read the next page.
    """
    size = DEFAULT_COMMENT_LIMIT if limit is None else limit
    size = min(MAX_COMMENT_LIMIT, max(1, size))
    rows = await repository.list_comments(project_id, limit=size, before=before)

    total = int(rows[0].get("total_count") or 0) if rows else 0
    next_cursor = _cursor(rows[-1].get("commented_at")) if len(rows) == size else None
    return {
        "totalCount": total,
        "data": [mapping.map_comment_row(row) for row in rows],
        "nextCursor": next_cursor,
    }


async def list_project_certifications(project_id: UUID) -> dict[str, Any]:
    if not await repository.project_exists(project_id):
        raise HTTPException(status_code=404, detail="Project not found.")
    rows = await repository.list_certifications(project_id)
    return {"data": [mapping.map_certification_row(row) for row in rows]}
