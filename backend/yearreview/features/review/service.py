"""
Year Review Service

Runs every requested provider adapter concurrently and folds the results
into one YearReview. A provider that fails is reported as unavailable with
the error kind as its reason; it never aborts the others.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

import httpx

from yearreview.config import Settings, settings as default_settings
from yearreview.credentials import CredentialStore, GoogleOAuth
from yearreview.features.base import ProviderAdapter
from yearreview.features.github import GitHubAdapter
from yearreview.features.google import GoogleAdapter
from yearreview.features.linear import LinearAdapter
from yearreview.features.slack import SlackAdapter
from yearreview.shared.constants import Provider
from yearreview.shared.errors import YearReviewError
from .schemas import ProviderReport, YearReview

logger = logging.getLogger(__name__)


ADAPTER_CLASSES: dict[Provider, type[ProviderAdapter]] = {
    Provider.GITHUB: GitHubAdapter,
    Provider.GOOGLE: GoogleAdapter,
    Provider.SLACK: SlackAdapter,
    Provider.LINEAR: LinearAdapter,
}

REASON_TIMEOUT = "timeout"
REASON_UNEXPECTED = "unexpected_error"
REASON_NOT_CONFIGURED = "not_configured"


def build_credential_store(
    settings: Optional[Settings] = None,
    backend=None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CredentialStore:
    """Credential store with the Google refresher registered."""
    settings = settings or default_settings
    return CredentialStore(
        backend,
        refreshers={
            Provider.GOOGLE.value: GoogleOAuth(
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                token_url=settings.google_token_url,
                transport=transport,
            )
        },
        expiry_margin_seconds=settings.token_expiry_margin_seconds,
    )


def build_adapters(
    store: CredentialStore,
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, ProviderAdapter]:
    """One adapter per provider, all sharing ``store``."""
    settings = settings or default_settings
    return {
        provider.value: adapter_class(store, settings, transport=transport)
        for provider, adapter_class in ADAPTER_CLASSES.items()
    }


class YearReviewService:
    """
    Aggregates provider statistics into a YearReview.

    Usage:
        service = YearReviewService(build_adapters(store))
        review = await service.build_review(2024, ["github", "slack"])
        await service.close()
    """

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        settings: Optional[Settings] = None,
    ):
        self.adapters = dict(adapters)
        self.settings = settings or default_settings

    async def build_review(
        self, year: int, providers: Optional[Iterable[str]] = None
    ) -> YearReview:
        """
        Build the review for ``year``.

        Args:
            year: Calendar year (UTC boundaries)
            providers: Provider names to include (default: all adapters)
        """
        names = [str(p) for p in providers] if providers is not None else list(self.adapters)
        logger.info(f"Building {year} review for: {', '.join(names)}")

        reports = await asyncio.gather(
            *(self._provider_report(name, year) for name in names)
        )
        review = YearReview(
            year=year,
            generated_at=datetime.now(timezone.utc),
            reports={report.provider: report for report in reports},
        )
        logger.info(
            f"{year} review done: {len(review.available_providers)}/{len(names)} providers available"
        )
        return review

    async def _provider_report(self, name: str, year: int) -> ProviderReport:
        adapter = self.adapters.get(name)
        if adapter is None:
            return ProviderReport.unavailable(name, REASON_NOT_CONFIGURED, f"no adapter for {name}")

        try:
            statistics = await asyncio.wait_for(
                adapter.get_year_statistics(year),
                timeout=self.settings.review_timeout_seconds,
            )
        except YearReviewError as e:
            logger.warning(f"{name} unavailable ({e.kind}): {e}")
            return ProviderReport.unavailable(name, e.kind, str(e))
        except asyncio.TimeoutError:
            logger.warning(f"{name} timed out after {self.settings.review_timeout_seconds}s")
            return ProviderReport.unavailable(
                name, REASON_TIMEOUT,
                f"no result within {self.settings.review_timeout_seconds} seconds",
            )
        except Exception as e:
            logger.exception(f"Unexpected error building {name} statistics")
            return ProviderReport.unavailable(name, REASON_UNEXPECTED, str(e))

        return ProviderReport.available(statistics)

    async def close(self):
        """Close every adapter's HTTP session."""
        await asyncio.gather(*(adapter.close() for adapter in self.adapters.values()))
