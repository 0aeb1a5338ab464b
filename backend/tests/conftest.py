"""
Shared fixtures.

HTTP is never real: every adapter gets an ``httpx.MockTransport`` driven by
an ``ApiRoutes`` table of canned responses.
"""

from datetime import datetime, timezone
from typing import Callable, Union

import httpx
import pytest

from yearreview.config import Settings
from yearreview.credentials import CredentialStore, ProviderCredential


FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

Handler = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class ApiRoutes:
    """
    Canned responses keyed by (method, path).

    A route holds either one response (returned every time), a handler
    called with the request, or a list consumed in order. Unknown routes
    answer 404. Every request is recorded in ``calls``.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Union[Handler, list]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, response: Union[Handler, list]) -> "ApiRoutes":
        self.routes[(method.upper(), path)] = response
        return self

    def json(self, method: str, path: str, payload, status: int = 200, headers=None) -> "ApiRoutes":
        return self.add(method, path, httpx.Response(status, json=payload, headers=headers))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        response = route if isinstance(route, httpx.Response) else route(request)
        # Fresh copy per request; canned responses are served repeatedly
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with pacing disabled and no .env lookup."""
    return Settings(
        _env_file=None,
        github_call_delay_seconds=0,
        gmail_call_delay_seconds=0,
        slack_call_delay_seconds=0,
        github_token=None,
        slack_token=None,
        linear_api_key=None,
        google_access_token=None,
        google_refresh_token=None,
        google_client_id="client-id",
        google_client_secret="client-secret",
        review_timeout_seconds=5,
    )


@pytest.fixture
def routes():
    return ApiRoutes()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store(clock):
    """Store with static tokens for GitHub, Slack and Linear."""
    credentials = CredentialStore(clock=clock)
    credentials.set("github", ProviderCredential(access_token="gh-token"))
    credentials.set("slack", ProviderCredential(access_token="xoxp-token"))
    credentials.set("linear", ProviderCredential(access_token="lin-key"))
    return credentials
