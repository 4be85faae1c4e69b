"""
View API endpoints (read-only).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from . import service

router = APIRouter(prefix="/views")


@router.get("/{project_id}/count")
async def count_views(project_id: UUID) -> dict:
    return {"data": await service.count_views(project_id)}


@router.get("/{project_id}")
async def list_views(
    project_id: UUID,
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    views = await service.list_views(project_id, limit=limit)
    return {"data": views, "count": len(views)}
