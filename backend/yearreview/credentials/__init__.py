"""
Credential management.

Usage:
    from yearreview.credentials import CredentialStore, GoogleOAuth

Components:
- ProviderCredential / TokenGrant: credential value types
- CredentialStore: per-provider lifecycle (get/set/clear/ensure_valid)
- GoogleOAuth: renewal for the one provider that supports it
- InMemoryCredentialBackend / SqlCredentialBackend: persistence
"""

from .models import ProviderCredential, TokenGrant
from .oauth import GoogleOAuth, TokenRefresher
from .repository import (
    CredentialBackend,
    InMemoryCredentialBackend,
    SqlCredentialBackend,
)
from .store import CredentialStore

__all__ = [
    "ProviderCredential",
    "TokenGrant",
    "GoogleOAuth",
    "TokenRefresher",
    "CredentialBackend",
    "InMemoryCredentialBackend",
    "SqlCredentialBackend",
    "CredentialStore",
]
