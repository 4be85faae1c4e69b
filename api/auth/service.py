"""
Authentication: access token -> active user row.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status

from users import repository as user_repository

from . import security


def _subject_user_id(payload: dict) -> UUID:
    subject = str(payload.get("sub") or "").strip()
    try:
        return UUID(subject)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        ) from exc


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    user_row = await user_repository.get_user_by_id(_subject_user_id(payload), include_deleted=True)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    if user_row.get("deleted_at") is not None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row
