"""
Monthly snapshot rollups used by the derived sort keys.

Snapshots are rows of `project_stats_monthly`: {"month": "YYYY-MM", "views": int, "likes": int}.
Both windows are calendar windows relative to the current UTC time:
- monthly: the previous calendar month (January rolls back to December)
- yearly: every month of the previous calendar year
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _period(snapshot: Any) -> tuple[int, int | None] | None:
    """
    Parse "YYYY-MM" (a trailing "-DD" is tolerated) into (year, month).
    Month is None when it is missing or unparsable; such keys are excluded
    from both windows.
    """
    if not isinstance(snapshot, dict):
        return None
    raw = str(snapshot.get("month") or "").strip()
    if not raw:
        return None
    parts = raw.split("-")
    try:
        year = int(parts[0])
    except ValueError:
        return None
    if len(parts) < 2:
        return year, None
    try:
        month = int(parts[1])
    except ValueError:
        return year, None
    if not 1 <= month <= 12:
        return year, None
    return year, month


def _delta(snapshot: dict, key: str) -> int:
    try:
        return int(snapshot.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _totals(snapshots: list[dict]) -> tuple[int, int]:
    views = sum(_delta(s, "views") for s in snapshots)
    likes = sum(_delta(s, "likes") for s in snapshots)
    return max(0, views), max(0, likes)


def previous_month(now: datetime) -> tuple[int, int]:
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


def calc_monthly_stats(snapshots: Iterable[Any] | None) -> dict[str, int]:
    year, month = previous_month(_utc_now())
    selected = [s for s in (snapshots or []) if _period(s) == (year, month)]
    views, likes = _totals(selected)
    return {"monthlyViewCount": views, "monthlyLikeCount": likes}


def calc_yearly_stats(snapshots: Iterable[Any] | None) -> dict[str, int]:
    prev_year = _utc_now().year - 1
    selected = []
    for s in snapshots or []:
        period = _period(s)
        if period is not None and period[0] == prev_year and period[1] is not None:
            selected.append(s)
    views, likes = _totals(selected)
    return {"yearlyViewCount": views, "yearlyLikeCount": likes}


def calc_stats(snapshots: Iterable[Any] | None) -> dict[str, int]:
    snapshots = list(snapshots or [])
    return {**calc_monthly_stats(snapshots), **calc_yearly_stats(snapshots)}
