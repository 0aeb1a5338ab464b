"""Commit filtering and per-repository aggregation for GitHub."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from yearreview.features.schemas import TopEntry
from yearreview.shared.dates import parse_iso
from yearreview.shared.stats import bucket_by_month, empty_histogram, rank_top


@dataclass
class RepositoryCommits:
    """Authored commits found in one probed repository."""

    name: str
    full_name: str
    commits: int
    language: str | None = None
    is_private: bool = False

    def to_entry(self) -> TopEntry:
        return TopEntry(
            label=self.name,
            count=self.commits,
            attributes={
                "full_name": self.full_name,
                "language": self.language,
                "is_private": self.is_private,
            },
        )


@dataclass
class CommitSummary:
    total: int = 0
    by_month: list[int] = field(default_factory=empty_histogram)
    repositories: list[RepositoryCommits] = field(default_factory=list)

    def add(self, repo: dict, dates: Sequence[Optional[datetime]], year: int) -> None:
        """Add one repository's authored commit dates."""
        if not dates:
            return
        self.total += len(dates)
        for month, count in enumerate(bucket_by_month(dates, year)):
            self.by_month[month] += count
        self.repositories.append(
            RepositoryCommits(
                name=repo.get("name") or repo.get("full_name", ""),
                full_name=repo.get("full_name", ""),
                commits=len(dates),
                language=repo.get("language"),
                is_private=bool(repo.get("private", False)),
            )
        )

    def top_repositories(self, limit: int) -> list[TopEntry]:
        ranked = rank_top(self.repositories, lambda r: r.commits, limit)
        return [r.to_entry() for r in ranked]


def _login(user: Optional[dict]) -> str:
    if not user:
        return ""
    return (user.get("login") or "").lower()


def is_authored_by(commit: dict, login: str) -> bool:
    """Author or committer account matches ``login`` (case-insensitive).

    The commits endpoint also returns commits where the user only
    co-authored or was matched by email, so the account is re-checked here.
    """
    target = login.lower()
    return _login(commit.get("author")) == target or _login(commit.get("committer")) == target


def commit_date(commit: dict) -> Optional[datetime]:
    """Author date of a commit (UTC)."""
    author = (commit.get("commit") or {}).get("author") or {}
    moment = parse_iso(author.get("date"))
    return moment.astimezone(timezone.utc) if moment else None


def authored_commit_dates(
    commits: Sequence[dict], login: str, year: int
) -> list[Optional[datetime]]:
    """Dates of commits authored by ``login`` in ``year``.

    Commits without a readable date are kept (None) so they still count
    toward the total, just not toward a month.
    """
    dates = []
    for commit in commits:
        if not is_authored_by(commit, login):
            continue
        moment = commit_date(commit)
        if moment is not None and moment.year != year:
            continue
        dates.append(moment)
    return dates
