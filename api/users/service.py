"""
User profile reads.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException

from . import repository


def to_profile(user_row: dict) -> dict:
    return {
        "userId": str(user_row["user_id"]),
        "username": user_row.get("username"),
        "fullname": user_row.get("fullname"),
        "email": user_row.get("email"),
        "profileImageUrl": user_row.get("profile_image_url"),
        "role": user_row.get("role"),
        "createdAt": user_row.get("created_at"),
    }


async def get_profile(user_id: UUID) -> dict:
    row = await repository.get_user_by_id(user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return to_profile(row)
