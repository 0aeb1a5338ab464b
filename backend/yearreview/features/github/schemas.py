"""
GitHub statistics schemas.
"""
from typing import Optional

from yearreview.features.schemas import NormalizedYearStatistics


class GitHubYearStatistics(NormalizedYearStatistics):
    """
    Commits are the headline count (``total_count``).

    Commit counts cover only the probed repositories (see ``coverage``).
    Pull request and issue counts come from the search API as-is; None means
    the search call failed.
    """
    pull_requests: Optional[int] = None
    issues: Optional[int] = None
    repositories: int = 0

    @property
    def commits(self) -> int:
        return self.total_count
