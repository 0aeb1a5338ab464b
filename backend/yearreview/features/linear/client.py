"""
Linear adapter.

Everything goes through the single GraphQL endpoint. Personal API keys are
sent as the raw ``Authorization`` value, without a scheme.

GraphQL reports failures in an ``errors`` array, sometimes with HTTP 200 and
sometimes with HTTP 400; authentication failures carry
``extensions.code == "AUTHENTICATION_ERROR"``.

Linear API Limits:
- 1,500 requests per hour per API key
- Complexity-based limit per query (page size 250 stays well below it)
"""

import logging
from typing import Optional

from yearreview.features.base import ProviderAdapter
from yearreview.features.schemas import Coverage, Identity
from yearreview.shared.constants import DEFAULT_TOP_N, Provider
from yearreview.shared.errors import MalformedResponseError, ProviderFetchError
from yearreview.shared.pagination import Page, PaginationStyle, Paginator
from yearreview.shared.stats import average_per_week
from yearreview.shared.tasks import run_concurrently
from .schemas import LinearYearStatistics
from .stats import completed_in_year, created_in_year, monthly, top_projects

logger = logging.getLogger(__name__)


VIEWER_QUERY = """
query Viewer {
  viewer { id name email }
}
"""

ISSUES_QUERY = """
query Issues($filter: IssueFilter, $first: Int!, $after: String) {
  issues(filter: $filter, first: $first, after: $after) {
    nodes {
      id
      createdAt
      completedAt
      project { id name }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

AUTH_ERROR_CODE = "AUTHENTICATION_ERROR"


def _is_auth_error(errors: list) -> bool:
    for error in errors:
        extensions = (error or {}).get("extensions") or {}
        if extensions.get("code") == AUTH_ERROR_CODE:
            return True
        if extensions.get("type") == "authentication error":
            return True
    return False


class LinearAdapter(ProviderAdapter):
    """
    Linear yearly statistics.

    Usage:
        adapter = LinearAdapter(store)
        stats = await adapter.get_year_statistics(2024)
    """

    provider = Provider.LINEAR

    def base_url(self) -> str:
        return self.settings.linear_api_url

    # -------------------------------------------------------------------------
    # API Calls
    # -------------------------------------------------------------------------

    async def query(self, query: str, variables: Optional[dict] = None, resource: str = "graphql") -> dict:
        """
        Run one GraphQL operation and return its ``data`` object.

        Raises:
            ReauthorizationRequiredError: the key was rejected
            ProviderFetchError: GraphQL or HTTP errors
            MalformedResponseError: no ``data`` in the response
        """
        try:
            payload = await self.api.request(
                "POST",
                "",
                token=await self.token(),
                auth_scheme=None,
                json={"query": query, "variables": variables or {}},
                resource=resource,
            )
        except ProviderFetchError as e:
            if e.status == 401 or AUTH_ERROR_CODE in (e.detail or ""):
                raise self.credentials.reject(self.name, e.detail or "401") from e
            raise

        if not isinstance(payload, dict):
            raise MalformedResponseError(self.name, resource, "expected an object")
        errors = payload.get("errors") or []
        if errors:
            if _is_auth_error(errors):
                raise self.credentials.reject(self.name, AUTH_ERROR_CODE)
            message = "; ".join(str((e or {}).get("message", e)) for e in errors)
            raise ProviderFetchError(self.name, resource, status=200, detail=message)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError(self.name, resource, "missing data")
        return data

    async def get_identity(self) -> Identity:
        data = await self.query(VIEWER_QUERY, resource="viewer")
        viewer = data.get("viewer") or {}
        if not viewer.get("id"):
            raise MalformedResponseError(self.name, "viewer", "missing id")
        return Identity(id=viewer["id"], name=viewer.get("name"), email=viewer.get("email"))

    def issue_paginator(self, role: str, user_id: str) -> Paginator:
        """Issues where ``role`` ("creator" or "assignee") is ``user_id``."""
        resource = f"issues by {role}"
        base_variables = {
            "filter": {role: {"id": {"eq": user_id}}},
            "first": self.settings.linear_page_size,
        }

        async def fetch(cursor):
            data = await self.query(
                ISSUES_QUERY, {**base_variables, "after": cursor}, resource=resource
            )
            connection = data.get("issues")
            if not isinstance(connection, dict):
                raise MalformedResponseError(self.name, resource, "missing issues connection")
            page_info = connection.get("pageInfo") or {}
            next_cursor = page_info.get("endCursor") if page_info.get("hasNextPage") else None
            return Page(connection.get("nodes") or [], next_cursor)

        return Paginator(
            fetch,
            PaginationStyle.GRAPHQL,
            resource=f"linear {resource}",
            max_pages=self.settings.linear_max_pages,
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_year_statistics(self, year: int) -> LinearYearStatistics:
        identity = await self.get_identity()

        paginators = {
            "created issues": self.issue_paginator("creator", identity.id),
            "assigned issues": self.issue_paginator("assignee", identity.id),
        }
        listings = await run_concurrently(
            *(self.collect_listing(p) for p in paginators.values())
        )

        (created_issues, _), (assigned_issues, _) = listings

        coverage = Coverage(probed=len(paginators), available=len(paginators))
        for (label, paginator), (_, complete) in zip(paginators.items(), listings):
            if not complete:
                coverage.failed += 1
                coverage.failed_resources.append(label)
            if paginator.truncated:
                coverage.truncated += 1

        created = created_in_year(created_issues, year)
        completed = completed_in_year(assigned_issues, year)

        logger.info(f"Linear {year}: {len(completed)} completed, {len(created)} created")

        return LinearYearStatistics(
            provider=self.name,
            year=year,
            identity=identity,
            total_count=len(completed),
            monthly=monthly(completed, "completedAt", year),
            top_entities=top_projects(completed, DEFAULT_TOP_N),
            average_per_week=average_per_week(len(completed)),
            coverage=coverage.finalize(),
            issues_created=len(created),
            created_by_month=monthly(created, "createdAt", year),
        )
