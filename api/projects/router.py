"""
Project API endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from auth import dependencies as auth_dependencies

from . import query, schemas, service

router = APIRouter(prefix="/project")

DEFAULT_LIST_STATUSES = ("Published",)


def parse_bound(name: str, raw: str | None) -> datetime | None:
    """
    ISO date or datetime; values without an offset are taken as UTC.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise HTTPException(
            status_code=400,
            detail=f"'{name}' must be an ISO date or datetime.",
        ) from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@router.get("/list")
async def list_projects(
    q: str | None = Query(default=None, max_length=200),
    badge: str | None = Query(default=None),
    status: str | None = Query(default=None, description="CSV of statuses, default Published"),
    created_from: str | None = Query(default=None, alias="from"),
    created_to: str | None = Query(default=None, alias="to"),
    contributors: str | None = Query(default=None, description="CSV of user ids"),
    order_by: str | None = Query(default=None, alias="orderBy"),
    order: str | None = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=query.DEFAULT_PAGE_SIZE, alias="pageSize"),
    include: str | None = Query(default=None, description="CSV: categories,links,files,contributors,comments"),
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    params = query.ProjectQuery(
        q=q,
        badge=badge,
        statuses=tuple(query.csv(status)) or DEFAULT_LIST_STATUSES,
        created_from=parse_bound("from", created_from),
        created_to=parse_bound("to", created_to),
        contributors=tuple(query.csv(contributors)),
        order_by=order_by,
        order=order,
        page=page,
        page_size=page_size,
        include=query.resolve_include(query.csv(include)),
    )
    return await service.list_projects(
        params,
        current_user_id=auth_dependencies.user_id_of(current_user),
    )


@router.get("/me")
async def my_projects(
    include: str | None = Query(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.list_user_projects(
        current_user["user_id"],
        include=query.resolve_include(query.csv(include)),
    )


@router.get("/details/{project_id}")
async def project_details(
    project_id: UUID,
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    return await service.get_project_details(
        project_id,
        current_user_id=auth_dependencies.user_id_of(current_user),
    )


@router.post("/details")
async def project_details_by_body(
    request: schemas.ProjectDetailsRequest,
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    return await service.get_project_details(
        request.project_id,
        current_user_id=auth_dependencies.user_id_of(current_user),
    )


@router.get("/{project_id}/comments")
async def project_comments(
    project_id: UUID,
    limit: int | None = Query(default=None, description="Page size, clamped to 1..100 (default 20)"),
    cursor: str | None = Query(default=None, description="nextCursor from the previous page"),
) -> dict:
    return await service.list_project_comments(
        project_id,
        limit=limit,
        before=parse_bound("cursor", cursor),
    )


@router.get("/{project_id}/certifications")
async def project_certifications(project_id: UUID) -> dict:
    return await service.list_project_certifications(project_id)
