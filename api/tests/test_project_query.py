from __future__ import annotations

from datetime import datetime, timezone

import pytest

from projects import query


# --- include resolution ---


def test_resolve_include_drops_unknown_tokens():
    assert query.resolve_include(["categories", "bogus", "FILES"]) == {"categories", "files"}


def test_resolve_include_only_unknown_tokens_yields_empty_set():
    assert query.resolve_include(["nope"]) == frozenset()


@pytest.mark.parametrize("tokens", [None, []])
def test_resolve_include_empty_uses_default(tokens):
    assert query.resolve_include(tokens) == {"categories", "links", "files"}
    assert query.resolve_include(tokens, default=frozenset({"contributors"})) == {"contributors"}


def test_embedded_relations_always_adds_certifications_and_likes():
    assert query.embedded_relations(frozenset()) == {"certifications", "likes"}
    assert query.embedded_relations({"files"}) == {"files", "certifications", "likes"}


def test_csv_trims_and_skips_blanks():
    assert query.csv(" a, b ,,c ") == ["a", "b", "c"]
    assert query.csv(None) == []
    assert query.csv("") == []


# --- sort resolution ---


@pytest.mark.parametrize("order_by", [None, "", "deleted_at", "title; DROP TABLE projects"])
def test_unknown_sort_key_falls_back_to_updated_at(order_by):
    sort = query.resolve_sort(order_by, None)
    assert sort.field == "updated_at"
    assert sort.ascending is False
    assert sort.order == "desc"


@pytest.mark.parametrize("order,ascending", [("asc", True), ("ASC", True), ("desc", False), ("up", False), (None, False)])
def test_sort_direction(order, ascending):
    assert query.resolve_sort("title", order).ascending is ascending


@pytest.mark.parametrize(
    "field,derived",
    [
        ("created_at", False),
        ("updated_at", False),
        ("title", False),
        ("like_count", False),
        ("view_count", False),
        ("monthly_like_count", True),
        ("monthly_view_count", True),
        ("yearly_like_count", True),
        ("yearly_view_count", True),
    ],
)
def test_sort_classification(field, derived):
    assert query.resolve_sort(field, "desc").derived is derived


# --- pagination ---


def test_calc_range_first_page():
    r = query.calc_range(1, 20)
    assert (r.page, r.size, r.start, r.end, r.limit) == (1, 20, 0, 19, 20)


def test_calc_range_second_page():
    r = query.calc_range(2, 10)
    assert (r.start, r.end) == (10, 19)


@pytest.mark.parametrize("page", [0, -3])
def test_calc_range_clamps_page(page):
    assert query.calc_range(page, 10).page == 1


@pytest.mark.parametrize("size,expected", [(0, 1), (-5, 1), (101, 100), (1000, 100), (55, 55)])
def test_calc_range_clamps_page_size(size, expected):
    assert query.calc_range(1, size).size == expected


@pytest.mark.parametrize("total,size,pages", [(0, 20, 0), (1, 20, 1), (20, 20, 1), (21, 20, 2), (25, 10, 3)])
def test_total_pages(total, size, pages):
    assert query.total_pages(total, size) == pages


# --- select composition ---


def test_build_select_base_and_mandatory_relations_only():
    sql = query.build_select(frozenset())
    for col in query.BASE_COLUMNS:
        assert f"p.{col}" in sql
    assert "AS certifications" in sql
    assert "AS likes" in sql
    assert "AS project_categories" not in sql
    assert "AS project_stats_monthly" not in sql


def test_build_select_includes_requested_relations_and_stats():
    sql = query.build_select({"categories", "contributors", "comments"}, with_stats=True)
    assert "AS project_categories" in sql
    assert "AS project_collaborators" in sql
    assert "AS comments" in sql
    assert "AS project_stats_monthly" in sql
    assert "AS project_external_links" not in sql
    assert "AS project_files" not in sql


def test_build_select_ignores_unknown_relation_names():
    assert query.build_select({"bogus"}) == query.build_select(frozenset())


def test_build_select_is_stable_for_same_include_set():
    assert query.build_select(["files", "links"]) == query.build_select(["links", "files"])


# --- predicates ---


def test_build_filters_without_params_only_excludes_soft_deleted():
    filters = query.build_filters(query.ProjectQuery())
    assert filters.clauses == ["p.deleted_at IS NULL"]
    assert filters.args == []


def test_build_filters_full_set_in_order():
    created_from = datetime(2024, 1, 1, tzinfo=timezone.utc)
    created_to = datetime(2024, 2, 1, tzinfo=timezone.utc)
    filters = query.build_filters(
        query.ProjectQuery(
            q="robot",
            badge="Senior",
            statuses=("Published", "Certified"),
            created_from=created_from,
            created_to=created_to,
            contributors=("u-1", "u-2"),
        )
    )

    assert filters.args == ["%robot%", "Senior", ["Published", "Certified"], created_from, created_to, ["u-1", "u-2"]]
    assert filters.clauses[1] == "(p.title ILIKE $1 OR p.content ILIKE $1)"
    assert filters.clauses[2] == "p.badge::text = $2"
    assert filters.clauses[3] == "p.status::text = ANY($3::text[])"
    assert filters.clauses[4] == "p.created_at >= $4"
    assert filters.clauses[5] == "p.created_at < $5"
    assert "project_collaborators" in filters.clauses[6]
    assert "ANY($6::text[])" in filters.clauses[6]
    assert len(filters.clauses) == 7


def test_contributor_filter_is_conjunctive():
    base = query.build_filters(query.ProjectQuery(badge="Thesis"))
    narrowed = query.build_filters(query.ProjectQuery(badge="Thesis", contributors=("user-x",)))
    assert narrowed.where.startswith(base.where + " AND EXISTS (")


def test_search_term_escapes_like_wildcards():
    filters = query.build_filters(query.ProjectQuery(q="100%_done\\"))
    assert filters.args == ["%100\\%\\_done\\\\%"]


def test_blank_search_and_badge_are_ignored():
    filters = query.build_filters(query.ProjectQuery(q="   ", badge=""))
    assert filters.args == []


def test_bind_numbers_placeholders_in_sequence():
    filters = query.Filters()
    assert filters.bind("a") == "$1"
    assert filters.bind("b") == "$2"
    assert filters.where == "true"


def test_to_bound_is_exclusive():
    bound = datetime(2024, 2, 1, tzinfo=timezone.utc)
    filters = query.build_filters(query.ProjectQuery(created_to=bound))
    assert filters.clauses[-1] == "p.created_at < $1"
    assert filters.args == [bound]


# --- ordering ---


def test_order_clause_for_stored_key():
    assert query.order_clause(query.resolve_sort("title", "asc")) == "p.title ASC NULLS LAST, p.project_id ASC"
    assert query.order_clause(query.resolve_sort(None, None)) == "p.updated_at DESC NULLS LAST, p.project_id ASC"


@pytest.mark.parametrize("field", ["like_count", "view_count"])
@pytest.mark.parametrize("order,direction", [("asc", "ASC"), ("desc", "DESC")])
def test_order_clause_treats_null_counters_as_zero(field, order, direction):
    clause = query.order_clause(query.resolve_sort(field, order))
    assert clause == f"COALESCE(p.{field}, 0) {direction}, p.project_id ASC"
    assert "NULLS" not in clause


def test_order_clause_rejects_derived_key():
    with pytest.raises(ValueError):
        query.order_clause(query.resolve_sort("monthly_view_count", "desc"))
