"""
User persistence helpers.
"""

from __future__ import annotations

from uuid import UUID

from core import db


async def get_user_by_id(user_id: UUID, *, include_deleted: bool = False) -> dict | None:
    return await db.fetch_one(
        """
        SELECT user_id, username, fullname, email, profile_image_url, role,
               created_at, updated_at, deleted_at
        FROM users
        WHERE user_id = $1
          AND ($2 OR deleted_at IS NULL)
        """,
        user_id,
        include_deleted,
    )
