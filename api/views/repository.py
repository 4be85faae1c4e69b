"""
Project view reads (raw SQL).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from core import db


async def count_views(project_id: UUID, *, since: datetime) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        SELECT
          count(*) AS total,
          count(DISTINCT user_id) AS unique_users,
          count(*) FILTER (WHERE viewed_at >= $2) AS recent
        FROM views
        WHERE project_id = $1
        """,
        project_id,
        since,
    )
    return row or {}


async def list_views(project_id: UUID, *, limit: int = 20) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT view_id, project_id, user_id, viewed_at
        FROM views
        WHERE project_id = $1
        ORDER BY viewed_at DESC NULLS LAST, view_id DESC
        LIMIT $2
        """,
        project_id,
        limit,
    )
