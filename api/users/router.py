"""
User API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/users")


@router.get("/me")
async def get_me(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return {"data": service.to_profile(current_user)}


@router.get("/{user_id}")
async def get_user(user_id: UUID) -> dict:
    return {"data": await service.get_profile(user_id)}
