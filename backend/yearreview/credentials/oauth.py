"""
Google OAuth token renewal.

Only renewal lives here: the authorization-code exchange and the redirect
handshake happen elsewhere and hand over the initial tokens.
"""

import logging
from typing import Optional, Protocol

import httpx

from yearreview.config import settings
from yearreview.shared.errors import OAuthError
from .models import TokenGrant

logger = logging.getLogger(__name__)


class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new access token."""

    async def refresh_token(self, refresh_token: str) -> TokenGrant: ...


class GoogleOAuth:
    """
    Google OAuth renewal handler.

    Usage:
        oauth = GoogleOAuth()
        grant = await oauth.refresh_token(refresh_token)
    """

    DEFAULT_EXPIRES_IN = 3600

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.token_url = token_url or settings.google_token_url
        self._transport = transport

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """
        Refresh an expired access token.

        Args:
            refresh_token: Current refresh token

        Returns:
            TokenGrant with the new access token and its lifetime

        Raises:
            OAuthError: If token refresh fails
        """
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.token_url,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": refresh_token,
                        "grant_type": "refresh_token"
                    }
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Token refresh failed: {e}", "google") from e

        if response.status_code != 200:
            logger.error(f"Google token refresh failed: {response.text}")
            raise OAuthError(
                f"Token refresh failed: {response.status_code}", "google"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise OAuthError("Token refresh returned invalid JSON", "google") from e

        if data.get("error") or not data.get("access_token"):
            logger.error(f"Google token refresh error: {data.get('error')}")
            raise OAuthError(
                f"Token refresh failed: {data.get('error', 'no access_token')}",
                "google"
            )

        return TokenGrant(
            access_token=data["access_token"],
            expires_in=int(data.get("expires_in") or self.DEFAULT_EXPIRES_IN),
            refresh_token=data.get("refresh_token"),
        )
