"""
GitHub integration.

Usage:
    from yearreview.features.github import GitHubAdapter
"""

from .client import GitHubAdapter
from .schemas import GitHubYearStatistics
from .stats import (
    CommitSummary,
    RepositoryCommits,
    authored_commit_dates,
    is_authored_by,
)

__all__ = [
    "GitHubAdapter",
    "GitHubYearStatistics",
    "CommitSummary",
    "RepositoryCommits",
    "authored_commit_dates",
    "is_authored_by",
]
