"""
Provider adapter capability.

Every provider implements the same two operations, so the review service
can treat them uniformly and new providers plug in by subclassing.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from yearreview.config import Settings, settings as default_settings
from yearreview.credentials import CredentialStore
from yearreview.shared.constants import Provider
from yearreview.shared.errors import SUB_RESOURCE_ERRORS, YearReviewError
from yearreview.shared.http import ApiClient
from yearreview.shared.pagination import Paginator
from .schemas import Coverage, Identity, NormalizedYearStatistics

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """
    Base class for provider adapters.

    Subclasses set ``provider`` and implement ``get_identity`` and
    ``get_year_statistics``. The credential store is borrowed, never owned.
    """

    provider: Provider
    default_headers: dict[str, str] = {}

    def __init__(
        self,
        credentials: CredentialStore,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self.api = ApiClient(
            self.name,
            self.base_url(),
            timeout=self.settings.http_timeout_seconds,
            default_headers=self.default_headers,
            max_rate_limit_retries=self.settings.max_rate_limit_retries,
            max_rate_limit_wait=self.settings.max_rate_limit_wait_seconds,
            transport=transport,
        )

    @abstractmethod
    def base_url(self) -> str:
        """API root for this provider."""

    @property
    def name(self) -> str:
        return self.provider.value

    @abstractmethod
    async def get_identity(self) -> Identity:
        """Who the credential belongs to. Errors here abort the report."""

    @abstractmethod
    async def get_year_statistics(self, year: int) -> NormalizedYearStatistics:
        """Yearly statistics normalized to the common schema."""

    async def validate_credential(self) -> bool:
        """True if the stored credential is accepted by the provider."""
        try:
            await self.get_identity()
        except YearReviewError as e:
            logger.info(f"{self.name} credential check failed: {e}")
            return False
        return True

    async def token(self) -> str:
        """Access token for one call."""
        return await self.credentials.ensure_valid(self.name)

    async def collect_listing(self, paginator: Paginator) -> tuple[list, bool]:
        """
        Collect an enumeration (repositories, channels, issues, events).

        When a later page fails, the pages already received are kept and the
        second value is False. A failure on the first page propagates.
        """
        records: list = []
        try:
            async for batch in paginator:
                records.extend(batch)
        except SUB_RESOURCE_ERRORS as e:
            if not e.partial:
                raise
            logger.warning(
                f"{paginator.resource} incomplete, keeping {len(records)} items: {e}"
            )
            return records, False
        return records, True

    def skip_sub_resource(
        self, coverage: Coverage, label: str, error: Exception
    ) -> None:
        """Record a failed sub-resource; it contributes nothing to counts."""
        logger.warning(f"Error fetching {self.name} {label}: {error}")
        coverage.failed += 1
        coverage.failed_resources.append(label)

    async def close(self):
        await self.api.close()
