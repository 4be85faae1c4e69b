"""Shared fixtures.

No database is needed: repository functions are replaced per test with
in-memory fakes, and the app is driven through httpx's ASGI transport
(which does not run the lifespan, so the asyncpg pool is never opened).
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
FIXED_NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _auth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_JWT_SECRET", JWT_SECRET)
    monkeypatch.delenv("JWT_ALG", raising=False)
    monkeypatch.delenv("JWT_AUDIENCE", raising=False)
    monkeypatch.delenv("PROJECT_DERIVED_SORT_MAX_ROWS", raising=False)


@pytest.fixture
def fixed_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    """Pin the rollup clock to 2025-03-15 (previous month 2025-02, previous year 2024)."""
    from projects import stats

    monkeypatch.setattr(stats, "_utc_now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
async def client():
    from main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_token(user_id: UUID | str, *, expires_in: int = 3600, audience: str = "authenticated", secret: str = JWT_SECRET) -> str:
    now = int(time.time())
    payload = {"sub": str(user_id), "aud": audience, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm="HS256")


def make_user(user_id: UUID | None = None, **overrides: Any) -> dict[str, Any]:
    user = {
        "user_id": user_id or uuid4(),
        "username": "jdoe",
        "fullname": "Jamie Doe",
        "email": "jamie@example.edu",
        "profile_image_url": None,
        "role": "contributor",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": None,
        "deleted_at": None,
    }
    user.update(overrides)
    return user


def make_project_row(index: int = 0, **overrides: Any) -> dict[str, Any]:
    """A raw `projects` row as the repository returns it (json relations decoded)."""
    row = {
        "project_id": UUID(int=index + 1),
        "title": f"Project {index}",
        "content": f"Content {index}",
        "badge": "Senior",
        "preview_image_url": None,
        "short_description": None,
        "status": "Published",
        "like_count": index,
        "view_count": index * 10,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 6, 1, tzinfo=timezone.utc),
        "project_categories": [],
        "project_external_links": [],
        "project_files": [],
        "certifications": [],
        "likes": [],
    }
    row.update(overrides)
    return row


@pytest.fixture
def user_store(monkeypatch: pytest.MonkeyPatch) -> dict[UUID, dict[str, Any]]:
    """Users looked up by auth and the users endpoints."""
    from users import repository as user_repository

    store: dict[UUID, dict[str, Any]] = {}

    async def get_user_by_id(user_id: UUID, *, include_deleted: bool = False) -> dict | None:
        user = store.get(user_id)
        if user is None:
            return None
        if user.get("deleted_at") is not None and not include_deleted:
            return None
        return user

    monkeypatch.setattr(user_repository, "get_user_by_id", get_user_by_id)
    return store
