"""
Project read persistence (raw SQL).

SELECT lists and WHERE predicates are composed in `query.py`; this module only
wraps them into statements and runs them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from core import db

from . import query

RELATED_PROJECTS_LIMIT = 8


def _copy(filters: query.Filters) -> query.Filters:
    return query.Filters(clauses=list(filters.clauses), args=list(filters.args))


async def fetch_page(
    *,
    select_sql: str,
    filters: query.Filters,
    order_sql: str,
    limit: int,
    offset: int,
) -> list[dict[str, Any]]:
    """
    One ordered page. Every row carries `total_count` for the whole match set.
    """
    f = _copy(filters)
    limit_ref = f.bind(limit)
    offset_ref = f.bind(offset)
    return await db.fetch_all(
        f"""
        SELECT
          {select_sql},
          count(*) OVER () AS total_count
        FROM projects p
        WHERE {f.where}
        ORDER BY {order_sql}
        LIMIT {limit_ref}
        OFFSET {offset_ref}
        """,
        *f.args,
    )


async def fetch_matching(
    *,
    select_sql: str,
    filters: query.Filters,
    max_rows: int | None = None,
) -> list[dict[str, Any]]:
    """
    The whole match set, unordered. With `max_rows`, at most max_rows + 1 rows
    are read so the caller can tell the cap was exceeded; `total_count` still
    reports the full size.
    """
    f = _copy(filters)
    limit_sql = ""
    if max_rows is not None:
        limit_sql = f"LIMIT {f.bind(max_rows + 1)}"
    return await db.fetch_all(
        f"""
        SELECT
          {select_sql},
          count(*) OVER () AS total_count
        FROM projects p
        WHERE {f.where}
        {limit_sql}
        """,
        *f.args,
    )


async def count_matching(filters: query.Filters) -> int:
    value = await db.fetch_value(
        f"""
        SELECT count(*)
        FROM projects p
        WHERE {filters.where}
        """,
        *filters.args,
    )
    return int(value or 0)


async def get_project(project_id: UUID, *, select_sql: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT
          {select_sql}
        FROM projects p
        WHERE p.project_id = $1
          AND p.deleted_at IS NULL
        """,
        project_id,
    )


async def list_related_projects(
    project_id: UUID,
    *,
    category_ids: list[str],
    limit: int = RELATED_PROJECTS_LIMIT,
) -> list[dict[str, Any]]:
    """
    Published projects sharing at least one category, most liked first.
    """
    if not category_ids:
        return []
    return await db.fetch_all(
        """
        SELECT
          p.project_id,
          p.title,
          p.badge,
          p.preview_image_url,
          p.short_description,
          p.like_count,
          p.view_count
        FROM projects p
        WHERE p.project_id <> $1
          AND p.status::text = 'Published'
          AND p.deleted_at IS NULL
          AND EXISTS (
            SELECT 1
            FROM project_categories pc
            WHERE pc.project_id = p.project_id
              AND pc.category_id::text = ANY($2::text[])
          )
        ORDER BY COALESCE(p.like_count, 0) DESC, p.project_id ASC
        LIMIT $3
        """,
        project_id,
        category_ids,
        limit,
    )


async def list_user_projects(user_id: UUID, *, select_sql: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT
          {select_sql}
        FROM projects p
        JOIN project_collaborators pcl ON pcl.project_id = p.project_id
        WHERE pcl.contributor_user_id = $1
          AND p.deleted_at IS NULL
        ORDER BY p.updated_at DESC NULLS LAST, p.project_id ASC
        """,
        user_id,
    )


async def project_exists(project_id: UUID) -> bool:
    value = await db.fetch_value(
        """
        SELECT EXISTS (
          SELECT 1
          FROM projects
          WHERE project_id = $1
            AND deleted_at IS NULL
        )
        """,
        project_id,
    )
    return bool(value)


async def list_comments(
    project_id: UUID,
    *,
    limit: int,
    before: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Newest comments first. `total_count` counts every comment older than
    `before` (or all of them), not just this page.
    """
    return await db.fetch_all(
        """
        SELECT
          comment_id,
          project_id,
          user_id,
          message,
          commented_at,
          count(*) OVER () AS total_count
        FROM comments
        WHERE project_id = $1
          AND ($2::timestamptz IS NULL OR commented_at < $2)
        ORDER BY commented_at DESC NULLS LAST, comment_id DESC
        LIMIT $3
        """,
        project_id,
        before,
        limit,
    )


async def list_certifications(project_id: UUID) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT
          ce.project_id,
          ce.professor_user_id,
          ce.certification_date,
          u.user_id,
          u.fullname,
          u.profile_image_url
        FROM certifications ce
        LEFT JOIN users u ON u.user_id = ce.professor_user_id
        WHERE ce.project_id = $1
        ORDER BY ce.certification_date DESC NULLS LAST, ce.professor_user_id ASC
        """,
        project_id,
    )
