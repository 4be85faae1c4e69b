"""
Auth dependencies for FastAPI routes.

Project reads are public but personalized when a token is sent
(`isLikedByCurrentUser`), so routes pick between a required and an optional
caller.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from . import service


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _parse_authorization(authorization: str | None, *, required: bool) -> str | None:
    """
    "Bearer <token>" -> token. A missing header is None unless `required`;
    a malformed one is always rejected.
    """
    raw = (authorization or "").strip()
    if not raw:
        if required:
            raise _unauthorized("Missing Authorization header.")
        return None

    scheme, _, token = raw.partition(" ")
    token = token.strip()
    if not token:
        raise _unauthorized("Invalid Authorization header format.")
    if scheme.lower() != "bearer":
        raise _unauthorized("Authorization must be: Bearer <token>.")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _parse_authorization(authorization, required=True)


async def get_current_user(access_token: str = Depends(get_bearer_token)) -> dict:
    return await service.get_user_from_access_token(access_token)


async def get_optional_user(authorization: str | None = Header(default=None)) -> dict | None:
    token = _parse_authorization(authorization, required=False)
    if token is None:
        return None
    return await service.get_user_from_access_token(token)


def user_id_of(user: dict | None) -> str | None:
    if user is None:
        return None
    return str(user["user_id"])
