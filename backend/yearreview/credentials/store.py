"""
Credential store.

Owns every provider credential for one session. Constructed once and passed
to each provider adapter; adapters only borrow the access token string for
a single call via ``ensure_valid``.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from yearreview.shared.errors import (
    CredentialExpiredError,
    OAuthError,
    ProviderFetchError,
    ReauthorizationRequiredError,
)
from .models import ProviderCredential, TokenGrant
from .oauth import TokenRefresher
from .repository import CredentialBackend, InMemoryCredentialBackend

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialStore:
    """
    Per-provider credential lifecycle.

    Usage:
        store = CredentialStore(refreshers={"google": GoogleOAuth()})
        store.set("google", ProviderCredential(token, refresh, expires_at))
        token = await store.ensure_valid("google")

    Renewable providers (those with a refresher) treat an unknown expiry as
    expired. Static credentials carry no expiry and are checked by the
    provider's who-am-I call instead.
    """

    def __init__(
        self,
        backend: Optional[CredentialBackend] = None,
        *,
        refreshers: Optional[Mapping[str, TokenRefresher]] = None,
        expiry_margin_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.backend = backend or InMemoryCredentialBackend()
        self.refreshers: dict[str, TokenRefresher] = {
            str(name): refresher for name, refresher in (refreshers or {}).items()
        }
        self.expiry_margin_seconds = expiry_margin_seconds
        self.clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    # -------------------------------------------------------------------------
    # Basic access
    # -------------------------------------------------------------------------

    def get(self, provider: str) -> Optional[ProviderCredential]:
        return self.backend.load(str(provider))

    def set(self, provider: str, credential: ProviderCredential) -> None:
        self.backend.save(str(provider), credential)

    def clear(self, provider: str) -> None:
        """Forget everything about a provider (disconnect)."""
        logger.info(f"Clearing credentials for {provider}")
        self.backend.delete(str(provider))

    def clear_all(self) -> None:
        """Forget every provider (logout)."""
        for provider in self.backend.providers():
            self.clear(provider)

    def is_connected(self, provider: str) -> bool:
        return self.get(provider) is not None

    def is_expired(self, provider: str) -> bool:
        """True when there is no credential or no expiry recorded."""
        credential = self.get(provider)
        if credential is None:
            return True
        return credential.is_expired(self.clock())

    def supports_renewal(self, provider: str) -> bool:
        return str(provider) in self.refreshers

    def store_grant(
        self,
        provider: str,
        grant: TokenGrant,
        refresh_token: Optional[str] = None,
    ) -> ProviderCredential:
        """Store a freshly issued token (initial authorization or renewal)."""
        credential = ProviderCredential(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or refresh_token,
            expires_at=grant.expiry(self.clock(), self.expiry_margin_seconds),
        )
        self.set(provider, credential)
        return credential

    # -------------------------------------------------------------------------
    # Validity
    # -------------------------------------------------------------------------

    async def ensure_valid(self, provider: str) -> str:
        """
        Return an access token that is not known to be expired.

        Raises:
            CredentialExpiredError: Renewable credential expired and renewal
                failed or was impossible (state cleared)
            ReauthorizationRequiredError: Static credential missing or past
                its recorded expiry
        """
        provider = str(provider)
        if not self.supports_renewal(provider):
            return self._static_token(provider)

        lock = self._locks.setdefault(provider, asyncio.Lock())
        async with lock:
            credential = self.get(provider)
            if credential is None:
                raise CredentialExpiredError(
                    f"No {provider} credential. Please reconnect.", provider
                )
            if not credential.is_expired(self.clock()):
                return credential.access_token

            if not credential.refresh_token:
                logger.warning(f"{provider} token expired and no refresh token available")
                self.clear(provider)
                raise CredentialExpiredError(
                    f"{provider} token expired. Please reconnect.", provider
                )

            logger.info(f"Refreshing {provider} token")
            try:
                grant = await self.refreshers[provider].refresh_token(
                    credential.refresh_token
                )
            except (OAuthError, ProviderFetchError) as e:
                logger.error(f"{provider} token refresh failed: {e}")
                self.clear(provider)
                raise CredentialExpiredError(
                    f"{provider} token refresh failed. Please reconnect.", provider
                ) from e

            renewed = credential.renewed(
                grant, self.clock(), self.expiry_margin_seconds
            )
            self.set(provider, renewed)
            logger.info(f"{provider} token refreshed, valid until {renewed.expires_at}")
            return renewed.access_token

    def _static_token(self, provider: str) -> str:
        credential = self.get(provider)
        if credential is None:
            raise ReauthorizationRequiredError(
                f"{provider} is not connected", provider
            )
        if credential.expires_at is not None and credential.is_expired(self.clock()):
            self.clear(provider)
            raise ReauthorizationRequiredError(
                f"{provider} credential expired. Please reconnect.", provider
            )
        return credential.access_token

    def reject(self, provider: str, reason: str) -> ReauthorizationRequiredError:
        """Clear a static credential the provider refused; returns the error to raise."""
        logger.warning(f"{provider} rejected the stored credential: {reason}")
        self.clear(provider)
        return ReauthorizationRequiredError(
            f"{provider} credential rejected ({reason}). Please reconnect.", provider
        )
