"""Year scoping and project ranking for Linear issues.

The issue filter used here cannot express a date range on these fields, so
every returned issue is re-checked against the year on the client.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from yearreview.features.schemas import TopEntry
from yearreview.shared.dates import parse_iso
from yearreview.shared.stats import bucket_by_month, rank_top


def _utc(value: Optional[str]) -> Optional[datetime]:
    moment = parse_iso(value)
    return moment.astimezone(timezone.utc) if moment else None


def created_in_year(issues: Iterable[dict], year: int) -> list[dict]:
    return [
        issue for issue in issues
        if (created := _utc(issue.get("createdAt"))) is not None and created.year == year
    ]


def completed_in_year(issues: Iterable[dict], year: int) -> list[dict]:
    """Issues with a non-empty completion timestamp inside ``year``."""
    return [
        issue for issue in issues
        if (completed := _utc(issue.get("completedAt"))) is not None and completed.year == year
    ]


def monthly(issues: Sequence[dict], field: str, year: int) -> list[int]:
    return bucket_by_month((_utc(issue.get(field)) for issue in issues), year)


def top_projects(completed: Sequence[dict], limit: int) -> list[TopEntry]:
    """Completed issues grouped by project; issues without one are ignored."""
    counts: dict[str, int] = {}
    for issue in completed:
        project = issue.get("project") or {}
        name = project.get("name")
        if name:
            counts[name] = counts.get(name, 0) + 1
    ranked = rank_top(counts.items(), lambda item: item[1], limit)
    return [TopEntry(label=name, count=count) for name, count in ranked]
