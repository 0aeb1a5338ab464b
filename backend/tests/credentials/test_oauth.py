"""
Tests for GoogleOAuth token renewal.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from yearreview.credentials import GoogleOAuth
from yearreview.shared.errors import OAuthError

TOKEN_URL = "https://oauth2.example.com/token"


def make_oauth(handler):
    return GoogleOAuth(
        client_id="client-id",
        client_secret="client-secret",
        token_url=TOKEN_URL,
        transport=httpx.MockTransport(handler),
    )


class TestRefreshToken:
    """Tests for GoogleOAuth.refresh_token."""

    @pytest.mark.asyncio
    async def test_posts_refresh_grant(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "new", "expires_in": 1800})

        grant = await make_oauth(handler).refresh_token("refresh-1")

        assert seen["url"] == TOKEN_URL
        assert seen["form"] == {
            "client_id": ["client-id"],
            "client_secret": ["client-secret"],
            "refresh_token": ["refresh-1"],
            "grant_type": ["refresh_token"],
        }
        assert grant.access_token == "new"
        assert grant.expires_in == 1800
        assert grant.refresh_token is None

    @pytest.mark.asyncio
    async def test_default_lifetime(self):
        grant = await make_oauth(
            lambda request: httpx.Response(200, json={"access_token": "new"})
        ).refresh_token("r")

        assert grant.expires_in == 3600

    @pytest.mark.asyncio
    async def test_non_200_raises(self):
        oauth = make_oauth(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(OAuthError):
            await oauth.refresh_token("revoked")

    @pytest.mark.asyncio
    async def test_error_field_raises(self):
        oauth = make_oauth(lambda request: httpx.Response(200, json={"error": "invalid_grant"}))

        with pytest.raises(OAuthError) as exc_info:
            await oauth.refresh_token("revoked")
        assert "invalid_grant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(OAuthError):
            await make_oauth(handler).refresh_token("r")
