"""
Map raw project rows (base columns + json relation aggregates) to API shape.
"""

from __future__ import annotations

from typing import Any, Iterable

from . import stats


def _id(value: Any) -> str | None:
    # asyncpg returns UUID objects for base columns; json aggregates carry strings.
    return str(value) if value is not None else None


def _count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _items(value: Any) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _user_profile(user: dict) -> dict[str, Any]:
    return {
        "userId": _id(user.get("user_id")),
        "username": user.get("username"),
        "fullname": user.get("fullname"),
        "email": user.get("email"),
        "profileImageUrl": user.get("profile_image_url"),
        "role": user.get("role"),
    }


def map_categories(value: Any) -> list[dict[str, Any]]:
    categories = [pc.get("category") for pc in _items(value)]
    return [
        {"categoryId": _id(c.get("category_id")), "categoryName": c.get("category_name")}
        for c in categories
        if isinstance(c, dict)
    ]


def map_links(value: Any) -> list[str]:
    return [link["link_url"] for link in _items(value) if link.get("link_url") is not None]


def map_files(value: Any) -> list[dict[str, Any]]:
    return [{"fileId": _id(f.get("file_id")), "fileUrl": f.get("file_url")} for f in _items(value)]


def map_contributors(value: Any) -> list[dict[str, Any]]:
    contributors = [pc.get("contributor") for pc in _items(value)]
    return [_user_profile(c) for c in contributors if isinstance(c, dict)]


def map_comments(value: Any) -> list[dict[str, Any]]:
    return [
        {
            "commentId": _id(c.get("comment_id")),
            "message": c.get("message"),
            "commentedAt": c.get("commented_at"),
            "user": _user_profile(c["user"]) if isinstance(c.get("user"), dict) else None,
        }
        for c in _items(value)
    ]


def map_certified_by(value: Any) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for cert in _items(value):
        professor = cert.get("professor")
        if not isinstance(professor, dict):
            continue
        user = professor.get("user") if isinstance(professor.get("user"), dict) else {}
        result.append(
            {
                "userId": _id(professor.get("user_id")),
                "fullname": user.get("fullname"),
                "email": user.get("email"),
                "profileImageUrl": user.get("profile_image_url"),
                "position": professor.get("position"),
                "department": professor.get("department"),
                "faculty": professor.get("faculty"),
                "certificationDate": cert.get("certification_date"),
            }
        )
    return result


def map_liked_by(value: Any) -> list[dict[str, Any]]:
    users = [like.get("user") for like in _items(value)]
    return [
        {
            "userId": _id(u.get("user_id")),
            "username": u.get("username"),
            "fullname": u.get("fullname"),
            "profileImageUrl": u.get("profile_image_url"),
        }
        for u in users
        if isinstance(u, dict)
    ]


_RELATION_MAPPERS = (
    ("categories", "categories", "project_categories", map_categories),
    ("links", "externalLinks", "project_external_links", map_links),
    ("files", "files", "project_files", map_files),
    ("contributors", "contributors", "project_collaborators", map_contributors),
    ("comments", "comments", "comments", map_comments),
)


def map_project_row(
    row: dict[str, Any],
    include: Iterable[str],
    *,
    with_stats: bool = False,
    current_user_id: str | None = None,
) -> dict[str, Any]:
    """
    Build one project projection.

    Optional relations appear only when requested, and always as lists.
    `certifiedBy`, `likedByUsers` and `isLikedByCurrentUser` are always present.
    """
    include = frozenset(include)
    result: dict[str, Any] = {
        "projectId": _id(row.get("project_id")),
        "title": row.get("title"),
        "badge": row.get("badge"),
        "status": row.get("status"),
        "previewImageUrl": row.get("preview_image_url"),
        "shortDescription": row.get("short_description"),
        "content": row.get("content"),
        "likeCount": _count(row.get("like_count")),
        "viewCount": _count(row.get("view_count")),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }

    if with_stats:
        result.update(stats.calc_stats(row.get("project_stats_monthly")))

    for name, key, column, mapper in _RELATION_MAPPERS:
        if name in include:
            result[key] = mapper(row.get(column))

    result["certifiedBy"] = map_certified_by(row.get("certifications"))

    liked_by = map_liked_by(row.get("likes"))
    result["likedByUsers"] = liked_by
    me = _id(current_user_id)
    result["isLikedByCurrentUser"] = me is not None and any(u["userId"] == me for u in liked_by)

    return result


def map_related_project(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "projectId": _id(row.get("project_id")),
        "title": row.get("title"),
        "badge": row.get("badge"),
        "previewImageUrl": row.get("preview_image_url"),
        "shortDescription": row.get("short_description"),
        "likeCount": _count(row.get("like_count")),
        "viewCount": _count(row.get("view_count")),
    }


def map_comment_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "commentId": _id(row.get("comment_id")),
        "projectId": _id(row.get("project_id")),
        "userId": _id(row.get("user_id")),
        "message": row.get("message"),
        "commentedAt": row.get("commented_at"),
    }


def map_certification_row(row: dict[str, Any]) -> dict[str, Any]:
    # LEFT JOIN: professor columns are null when the user row is gone.
    professor = None
    if row.get("user_id") is not None:
        professor = {
            "userId": _id(row.get("user_id")),
            "fullname": row.get("fullname"),
            "profileImageUrl": row.get("profile_image_url"),
        }
    return {
        "projectId": _id(row.get("project_id")),
        "professorUserId": _id(row.get("professor_user_id")),
        "certificationDate": row.get("certification_date"),
        "professor": professor,
    }
