"""Credential value types (dataclasses, no DB dependency)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass(frozen=True)
class ProviderCredential:
    """Access credential for one provider."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None  # aware UTC; None = unknown

    def is_expired(self, now: datetime) -> bool:
        """Unknown expiry counts as expired."""
        return self.expires_at is None or now >= self.expires_at

    def renewed(self, grant: TokenGrant, now: datetime, margin_seconds: int) -> ProviderCredential:
        """Credential after a successful renewal.

        The previous refresh token is kept when the grant carries none.
        """
        return replace(
            self,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or self.refresh_token,
            expires_at=grant.expiry(now, margin_seconds),
        )


@dataclass(frozen=True)
class TokenGrant:
    """Token endpoint response."""

    access_token: str
    expires_in: int  # seconds
    refresh_token: str | None = None

    def expiry(self, now: datetime, margin_seconds: int) -> datetime:
        return now + timedelta(seconds=self.expires_in - margin_seconds)
