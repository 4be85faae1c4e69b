"""
Project list query building blocks.

Everything here is pure: it turns caller parameters into SQL fragments,
positional arguments and pagination numbers. Nothing talks to the database.

- include resolution (which nested relations to embed)
- sort resolution (allow-listed column or derived metric)
- pagination range
- SELECT list with nested relation aggregates
- WHERE predicates with asyncpg $n placeholders
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

INCLUDE_KEYS = frozenset({"categories", "links", "files", "contributors", "comments"})
DEFAULT_INCLUDE = frozenset({"categories", "links", "files"})

# Attached to every project regardless of the caller's include list.
ALWAYS_INCLUDED_RELATIONS = frozenset({"certifications", "likes"})

SORT_WHITELIST = (
    "created_at",
    "updated_at",
    "title",
    "like_count",
    "view_count",
    "monthly_like_count",
    "monthly_view_count",
    "yearly_like_count",
    "yearly_view_count",
)
DEFAULT_SORT_FIELD = "updated_at"

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def csv(value: str | None) -> list[str]:
    """
    Split a comma-separated query parameter into trimmed, non-empty tokens.
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_include(
    tokens: Iterable[str] | None,
    *,
    default: frozenset[str] = DEFAULT_INCLUDE,
) -> frozenset[str]:
    """
    Keep only known relation names; unknown tokens are dropped silently.
    An empty request falls back to `default`.
    """
    requested = {str(t).strip().lower() for t in (tokens or [])}
    if not requested:
        return frozenset(default)
    return frozenset(requested & INCLUDE_KEYS)


def known_relations(include: Iterable[str]) -> frozenset[str]:
    """
    Drop unknown names without applying any default.
    """
    return frozenset(include) & INCLUDE_KEYS


def embedded_relations(include: Iterable[str]) -> frozenset[str]:
    return frozenset(include) | ALWAYS_INCLUDED_RELATIONS


@dataclass(frozen=True)
class SortSpec:
    field: str
    ascending: bool

    @property
    def derived(self) -> bool:
        return "monthly_" in self.field or "yearly_" in self.field

    @property
    def order(self) -> str:
        return "asc" if self.ascending else "desc"


def resolve_sort(order_by: str | None, order: str | None) -> SortSpec:
    field_name = order_by if order_by in SORT_WHITELIST else DEFAULT_SORT_FIELD
    ascending = (order or "desc").strip().lower() == "asc"
    return SortSpec(field=field_name, ascending=ascending)


@dataclass(frozen=True)
class PageRange:
    page: int
    size: int
    start: int
    end: int

    @property
    def limit(self) -> int:
        return self.end - self.start + 1


def calc_range(page: int, page_size: int) -> PageRange:
    p = max(1, int(page))
    size = min(MAX_PAGE_SIZE, max(1, int(page_size)))
    start = (p - 1) * size
    return PageRange(page=p, size=size, start=start, end=start + size - 1)


def total_pages(total: int, page_size: int) -> int:
    if total <= 0:
        return 0
    return -(-total // page_size)


@dataclass(frozen=True)
class ProjectQuery:
    """
    Caller-facing list parameters, built once per request.
    """

    q: str | None = None
    badge: str | None = None
    statuses: tuple[str, ...] = ()
    created_from: datetime | None = None
    created_to: datetime | None = None
    contributors: tuple[str, ...] = ()
    order_by: str | None = None
    order: str | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    include: frozenset[str] = DEFAULT_INCLUDE


BASE_COLUMNS = (
    "project_id",
    "title",
    "content",
    "badge",
    "preview_image_url",
    "short_description",
    "status",
    "like_count",
    "view_count",
    "created_at",
    "updated_at",
)

_USER_PROFILE_JSON = """json_build_object(
          'user_id', u.user_id,
          'username', u.username,
          'fullname', u.fullname,
          'email', u.email,
          'profile_image_url', u.profile_image_url,
          'role', u.role
        )"""

RELATION_SELECTS: dict[str, str] = {
    "categories": """
    COALESCE((
      SELECT json_agg(json_build_object(
        'category', (
          SELECT json_build_object('category_id', c.category_id, 'category_name', c.category_name)
          FROM categories c
          WHERE c.category_id = pc.category_id
        )
      ))
      FROM project_categories pc
      WHERE pc.project_id = p.project_id
    ), '[]'::json) AS project_categories""",
    "links": """
    COALESCE((
      SELECT json_agg(json_build_object('link_url', l.link_url))
      FROM project_external_links l
      WHERE l.project_id = p.project_id
    ), '[]'::json) AS project_external_links""",
    "files": """
    COALESCE((
      SELECT json_agg(json_build_object('file_id', f.file_id, 'file_url', f.file_url))
      FROM project_files f
      WHERE f.project_id = p.project_id
    ), '[]'::json) AS project_files""",
    "contributors": f"""
    COALESCE((
      SELECT json_agg(json_build_object(
        'contributor', (
          SELECT {_USER_PROFILE_JSON}
          FROM users u
          WHERE u.user_id = pcl.contributor_user_id
        )
      ))
      FROM project_collaborators pcl
      WHERE pcl.project_id = p.project_id
    ), '[]'::json) AS project_collaborators""",
    "comments": f"""
    COALESCE((
      SELECT json_agg(json_build_object(
        'comment_id', cm.comment_id,
        'message', cm.message,
        'commented_at', cm.commented_at,
        'user', (
          SELECT {_USER_PROFILE_JSON}
          FROM users u
          WHERE u.user_id = cm.user_id
        )
      ) ORDER BY cm.commented_at, cm.comment_id)
      FROM comments cm
      WHERE cm.project_id = p.project_id
    ), '[]'::json) AS comments""",
    "certifications": """
    COALESCE((
      SELECT json_agg(json_build_object(
        'certification_date', ce.certification_date,
        'professor', (
          SELECT json_build_object(
            'user_id', pr.user_id,
            'position', pr.position,
            'department', pr.department,
            'faculty', pr.faculty,
            'user', (
              SELECT json_build_object(
                'fullname', u.fullname,
                'email', u.email,
                'profile_image_url', u.profile_image_url
              )
              FROM users u
              WHERE u.user_id = pr.user_id
            )
          )
          FROM professors pr
          WHERE pr.user_id = ce.professor_user_id
        )
      ) ORDER BY ce.certification_date)
      FROM certifications ce
      WHERE ce.project_id = p.project_id
    ), '[]'::json) AS certifications""",
    "likes": """
    COALESCE((
      SELECT json_agg(json_build_object(
        'user', (
          SELECT json_build_object(
            'user_id', u.user_id,
            'username', u.username,
            'fullname', u.fullname,
            'profile_image_url', u.profile_image_url
          )
          FROM users u
          WHERE u.user_id = lk.user_id
        )
      ))
      FROM likes lk
      WHERE lk.project_id = p.project_id
    ), '[]'::json) AS likes""",
}

STATS_SELECT = """
    COALESCE((
      SELECT json_agg(json_build_object('month', s.month, 'views', s.views, 'likes', s.likes))
      FROM project_stats_monthly s
      WHERE s.project_id = p.project_id
    ), '[]'::json) AS project_stats_monthly"""

# Fixed emission order keeps the generated SQL stable for a given include set.
_RELATION_ORDER = ("categories", "links", "files", "contributors", "comments", "certifications", "likes")


def build_select(include: Iterable[str], *, with_stats: bool = False) -> str:
    """
    Build the SELECT list for `projects p`: base columns plus one correlated
    json aggregate per embedded relation.
    """
    relations = embedded_relations(known_relations(include))
    parts = [f"p.{col}" for col in BASE_COLUMNS]
    if with_stats:
        parts.append(STATS_SELECT.strip())
    for name in _RELATION_ORDER:
        if name in relations:
            parts.append(RELATION_SELECTS[name].strip())
    return ",\n    ".join(parts)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class Filters:
    clauses: list[str] = field(default_factory=list)
    args: list[Any] = field(default_factory=list)

    def bind(self, value: Any) -> str:
        self.args.append(value)
        return f"${len(self.args)}"

    @property
    def where(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "true"


def build_filters(query: ProjectQuery) -> Filters:
    """
    Translate list filters into AND-ed predicates over `projects p`.
    """
    filters = Filters(clauses=["p.deleted_at IS NULL"])

    term = (query.q or "").strip()
    if term:
        ref = filters.bind(f"%{_escape_like(term)}%")
        filters.clauses.append(f"(p.title ILIKE {ref} OR p.content ILIKE {ref})")

    badge = (query.badge or "").strip()
    if badge:
        filters.clauses.append(f"p.badge::text = {filters.bind(badge)}")

    if query.statuses:
        filters.clauses.append(f"p.status::text = ANY({filters.bind(list(query.statuses))}::text[])")

    if query.created_from is not None:
        filters.clauses.append(f"p.created_at >= {filters.bind(query.created_from)}")

    # Exclusive upper bound.
    if query.created_to is not None:
        filters.clauses.append(f"p.created_at < {filters.bind(query.created_to)}")

    if query.contributors:
        ref = filters.bind(list(query.contributors))
        filters.clauses.append(
            "EXISTS ("
            "SELECT 1 FROM project_collaborators pcf "
            "WHERE pcf.project_id = p.project_id "
            f"AND pcf.contributor_user_id::text = ANY({ref}::text[])"
            ")"
        )

    return filters


# Counters are reported as 0 when null, so they sort as 0 too.
COUNTER_SORT_FIELDS = frozenset({"like_count", "view_count"})


def order_clause(sort: SortSpec) -> str:
    """
    ORDER BY for stored sort keys. `project_id` breaks ties.
    """
    if sort.derived:
        raise ValueError(f"{sort.field} is not a stored column.")
    direction = "ASC" if sort.ascending else "DESC"
    if sort.field in COUNTER_SORT_FIELDS:
        return f"COALESCE(p.{sort.field}, 0) {direction}, p.project_id ASC"
    return f"p.{sort.field} {direction} NULLS LAST, p.project_id ASC"
