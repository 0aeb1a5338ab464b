"""
Credential persistence backends.

The CredentialStore only talks to the CredentialBackend protocol, so the
storage medium can be swapped without touching providers.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from yearreview.models import ProviderToken
from .models import ProviderCredential


class CredentialBackend(Protocol):
    """Key-value storage for credentials, keyed by provider name."""

    def load(self, provider: str) -> Optional[ProviderCredential]: ...

    def save(self, provider: str, credential: ProviderCredential) -> None: ...

    def delete(self, provider: str) -> None: ...

    def providers(self) -> list[str]: ...


class InMemoryCredentialBackend:
    """Process-local backend, lost when the process exits."""

    def __init__(self):
        self._items: dict[str, ProviderCredential] = {}

    def load(self, provider: str) -> Optional[ProviderCredential]:
        return self._items.get(provider)

    def save(self, provider: str, credential: ProviderCredential) -> None:
        self._items[provider] = credential

    def delete(self, provider: str) -> None:
        self._items.pop(provider, None)

    def providers(self) -> list[str]:
        return list(self._items)


class SqlCredentialBackend:
    """
    Backend storing credentials in the ``provider_tokens`` table.

    Usage:
        backend = SqlCredentialBackend(create_session_factory("sqlite:///./credentials.db"))
        store = CredentialStore(backend)
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self, provider: str) -> Optional[ProviderCredential]:
        with self.session_factory() as db:
            row = db.get(ProviderToken, provider)
            if row is None:
                return None
            return _to_credential(row)

    def save(self, provider: str, credential: ProviderCredential) -> None:
        expires_at = (
            int(credential.expires_at.timestamp())
            if credential.expires_at is not None else None
        )
        with self.session_factory() as db:
            row = db.get(ProviderToken, provider)
            if row is None:
                row = ProviderToken(provider=provider)
                db.add(row)
            row.access_token = credential.access_token
            row.refresh_token = credential.refresh_token
            row.expires_at = expires_at
            row.updated_at = datetime.utcnow()
            db.commit()

    def delete(self, provider: str) -> None:
        with self.session_factory() as db:
            row = db.get(ProviderToken, provider)
            if row is not None:
                db.delete(row)
                db.commit()

    def providers(self) -> list[str]:
        with self.session_factory() as db:
            return list(db.scalars(select(ProviderToken.provider)))


def _to_credential(row: ProviderToken) -> ProviderCredential:
    expires_at = None
    if row.expires_at is not None:
        expires_at = datetime.fromtimestamp(row.expires_at, tz=timezone.utc)
    return ProviderCredential(
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        expires_at=expires_at,
    )
