"""
View counters for a project.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from . import repository

RECENT_WINDOW = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def count_views(project_id: UUID) -> dict[str, int]:
    row = await repository.count_views(project_id, since=_utc_now() - RECENT_WINDOW)
    return {
        "total": int(row.get("total") or 0),
        "uniqueUsers": int(row.get("unique_users") or 0),
        "last24h": int(row.get("recent") or 0),
    }


async def list_views(project_id: UUID, *, limit: int = 20) -> list[dict]:
    rows = await repository.list_views(project_id, limit=max(1, min(limit, 100)))
    return [
        {
            "viewId": str(row["view_id"]),
            "projectId": str(row["project_id"]),
            "userId": str(row["user_id"]),
            "viewedAt": row.get("viewed_at"),
        }
        for row in rows
    ]
