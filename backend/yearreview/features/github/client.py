"""
GitHub adapter.

Commit counts are collected per repository from the commits endpoint,
filtered again client-side by author, and summed over the most recently
updated repositories only (bounded fan-out). Pull request and issue totals
come from the search API's ``total_count`` without per-item checks.

GitHub API Limits:
- 5,000 requests per hour for authenticated users
- Search API: 30 requests per minute
"""

import logging
from typing import Optional

from yearreview.features.base import ProviderAdapter
from yearreview.features.schemas import Coverage, Identity
from yearreview.shared.constants import DEFAULT_TOP_N, Provider
from yearreview.shared.dates import to_iso_z, year_end, year_start
from yearreview.shared.errors import SUB_RESOURCE_ERRORS, MalformedResponseError, ProviderFetchError
from yearreview.shared.pagination import Page, PaginationStyle, Paginator, pacing_for
from yearreview.shared.stats import average_per_day
from yearreview.shared.tasks import run_concurrently
from .schemas import GitHubYearStatistics
from .stats import CommitSummary, authored_commit_dates

logger = logging.getLogger(__name__)


class GitHubAdapter(ProviderAdapter):
    """
    GitHub yearly statistics.

    Usage:
        adapter = GitHubAdapter(store)
        stats = await adapter.get_year_statistics(2024)
    """

    provider = Provider.GITHUB
    default_headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    def base_url(self) -> str:
        return self.settings.github_api_url

    # -------------------------------------------------------------------------
    # API Calls
    # -------------------------------------------------------------------------

    async def _get(self, path: str, params: Optional[dict] = None, resource: Optional[str] = None):
        return await self.api.request(
            "GET", path, token=await self.token(), params=params, resource=resource
        )

    async def get_user(self) -> dict:
        """Get the authenticated user; a rejected token needs reauthorization."""
        try:
            user = await self._get("/user", resource="user")
        except ProviderFetchError as e:
            if e.status == 401:
                raise self.credentials.reject(self.name, "401 Unauthorized") from e
            raise
        if not isinstance(user, dict) or not user.get("login"):
            raise MalformedResponseError(self.name, "user", "missing login")
        return user

    async def get_identity(self) -> Identity:
        user = await self.get_user()
        return Identity(
            id=str(user["id"]) if user.get("id") is not None else None,
            name=user.get("name") or user["login"],
            email=user.get("email"),
            handle=user["login"],
        )

    async def list_repositories(self) -> tuple[list[dict], bool]:
        """
        Repositories the user owns or collaborates on, most recently updated first.

        The flag is False when a later page failed and the list is incomplete.
        """
        page_size = self.settings.github_page_size

        async def fetch(page):
            repos = await self._get(
                "/user/repos",
                params={
                    "per_page": page_size,
                    "page": page,
                    "sort": "updated",
                    "affiliation": "owner,collaborator",
                },
                resource="repositories",
            )
            if not isinstance(repos, list):
                raise MalformedResponseError(self.name, "repositories", "expected a list")
            return Page(repos)

        return await self.collect_listing(Paginator(
            fetch,
            PaginationStyle.OFFSET,
            resource="github repositories",
            page_size=page_size,
            max_pages=self.settings.github_repository_pages,
            pacing=pacing_for(self.settings.github_call_delay_seconds),
        ))

    def commit_paginator(self, full_name: str, login: str, year: int) -> Paginator:
        """Commits of one repository filtered server-side by author and year."""
        page_size = self.settings.github_page_size
        params = {
            "author": login,
            "since": to_iso_z(year_start(year)),
            "until": to_iso_z(year_end(year)),
            "per_page": page_size,
        }

        async def fetch(page):
            commits = await self._get(
                f"/repos/{full_name}/commits",
                params={**params, "page": page},
                resource=f"commits of {full_name}",
            )
            if not isinstance(commits, list):
                raise MalformedResponseError(
                    self.name, f"commits of {full_name}", "expected a list"
                )
            return Page(commits)

        return Paginator(
            fetch,
            PaginationStyle.OFFSET,
            resource=f"github commits {full_name}",
            page_size=page_size,
            max_pages=self.settings.github_commit_pages,
            pacing=pacing_for(self.settings.github_call_delay_seconds),
        )

    async def search_count(self, login: str, year: int, kind: str) -> Optional[int]:
        """
        Number of pull requests or issues created by ``login`` in ``year``.

        Single-shot: only ``total_count`` is read. Returns None on failure.
        """
        query = f"author:{login} created:{year}-01-01..{year}-12-31 type:{kind}"

        async def fetch(_cursor):
            data = await self._get(
                "/search/issues",
                params={"q": query, "per_page": 1},
                resource=f"{kind} search",
            )
            if not isinstance(data, dict) or "total_count" not in data:
                raise MalformedResponseError(self.name, f"{kind} search", "missing total_count")
            return Page([data["total_count"]])

        try:
            counts = await Paginator(
                fetch, PaginationStyle.SINGLE, resource=f"github {kind} search"
            ).collect()
        except SUB_RESOURCE_ERRORS as e:
            logger.warning(f"Error fetching GitHub {kind} count: {e}")
            return None
        return int(counts[0] or 0)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_year_statistics(self, year: int) -> GitHubYearStatistics:
        identity = await self.get_identity()
        login = identity.handle

        (repos, complete), pull_requests, issues = await run_concurrently(
            self.list_repositories(),
            self.search_count(login, year, "pr"),
            self.search_count(login, year, "issue"),
        )

        limit = self.settings.github_max_repositories
        probed = repos[:limit]
        coverage = Coverage(probed=len(probed), available=len(repos), limit=limit)
        if not complete:
            coverage.failed += 1
            coverage.failed_resources.append("repository listing")
        summary = CommitSummary()

        for repo in probed:
            full_name = repo.get("full_name") or repo.get("name", "")
            paginator = self.commit_paginator(full_name, login, year)
            try:
                commits = await paginator.collect()
            except SUB_RESOURCE_ERRORS as e:
                self.skip_sub_resource(coverage, full_name, e)
                continue
            if paginator.truncated:
                coverage.truncated += 1
            summary.add(repo, authored_commit_dates(commits, login, year), year)

        logger.info(
            f"GitHub {year}: {summary.total} commits in "
            f"{len(summary.repositories)}/{len(probed)} repositories"
        )

        return GitHubYearStatistics(
            provider=self.name,
            year=year,
            identity=identity,
            total_count=summary.total,
            monthly=summary.by_month,
            top_entities=summary.top_repositories(DEFAULT_TOP_N),
            average_per_day=average_per_day(summary.total, year),
            coverage=coverage.finalize(),
            pull_requests=pull_requests,
            issues=issues,
            repositories=len(repos),
        )
