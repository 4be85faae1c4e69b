"""
Access token verification.

Tokens are issued by the hosted auth service that fronts the database and
signed with its JWT secret; this API only verifies them.
"""

from __future__ import annotations

import os
from typing import Any

import jwt


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    secret = os.environ.get("SUPABASE_JWT_SECRET", "").strip()
    if not secret:
        raise AuthSecurityError("SUPABASE_JWT_SECRET is not set.")
    return secret


def jwt_algorithm() -> str:
    return os.environ.get("JWT_ALG", "HS256").strip() or "HS256"


def jwt_audience() -> str:
    return os.environ.get("JWT_AUDIENCE", "authenticated").strip() or "authenticated"


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            jwt_secret(),
            algorithms=[jwt_algorithm()],
            audience=jwt_audience(),
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    return payload
