"""
Year Review CLI

Builds a yearly activity review across the connected providers and prints
it as JSON.

Usage:
    year-review --year 2024
    year-review --year 2024 --providers github,slack --credentials-db sqlite:///./credentials.db
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from yearreview.config import Settings, settings as default_settings
from yearreview.credentials import CredentialStore, ProviderCredential, SqlCredentialBackend
from yearreview.db import create_session_factory
from yearreview.features.review import YearReview, YearReviewService, build_adapters, build_credential_store
from yearreview.shared.constants import Provider

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def seed_credentials(store: CredentialStore, settings: Settings) -> None:
    """
    Put tokens from the environment into the store.

    Static tokens always replace the stored ones. Google tokens are only
    seeded when the stored refresh token differs; they carry no expiry, so
    the first call renews them.
    """
    static_tokens = {
        Provider.GITHUB.value: settings.github_token,
        Provider.SLACK.value: settings.slack_token,
        Provider.LINEAR.value: settings.linear_api_key,
    }
    for provider, token in static_tokens.items():
        if token:
            store.set(provider, ProviderCredential(access_token=token))

    if settings.google_refresh_token:
        existing = store.get(Provider.GOOGLE.value)
        if existing is None or existing.refresh_token != settings.google_refresh_token:
            store.set(
                Provider.GOOGLE.value,
                ProviderCredential(
                    access_token=settings.google_access_token or "",
                    refresh_token=settings.google_refresh_token,
                ),
            )


def open_store(credentials_db: str, settings: Settings) -> CredentialStore:
    """SQL-backed store seeded from the environment."""
    logger.info(f"Using credential store {credentials_db}")
    backend = SqlCredentialBackend(create_session_factory(credentials_db))
    store = build_credential_store(settings, backend)
    seed_credentials(store, settings)
    return store


async def run_review(
    year: int,
    providers: list[str],
    credentials_db: str,
    settings: Optional[Settings] = None,
) -> YearReview:
    settings = settings or default_settings
    store = open_store(credentials_db, settings)

    service = YearReviewService(build_adapters(store, settings), settings)
    try:
        return await service.build_review(year, providers)
    finally:
        await service.close()


async def check_credentials(
    providers: list[str],
    credentials_db: str,
    settings: Optional[Settings] = None,
) -> dict[str, bool]:
    """Ask each provider whether it accepts the stored credential."""
    settings = settings or default_settings
    store = open_store(credentials_db, settings)
    adapters = build_adapters(store, settings)
    try:
        results = await asyncio.gather(
            *(adapters[name].validate_credential() for name in providers)
        )
    finally:
        await asyncio.gather(*(adapter.close() for adapter in adapters.values()))
    return dict(zip(providers, results))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="year-review",
        description="Yearly activity review across GitHub, Google, Slack and Linear",
    )
    parser.add_argument(
        "--year",
        type=int,
        default=datetime.now(timezone.utc).year,
        help="Calendar year to review (default: current year)",
    )
    parser.add_argument(
        "--providers",
        help="Comma-separated providers (default: all configured, e.g. github,slack)",
    )
    parser.add_argument(
        "--credentials-db",
        default=default_settings.credentials_database_url,
        help="SQLAlchemy URL of the credential store",
    )
    parser.add_argument(
        "--check-credentials",
        action="store_true",
        help="Only check that each provider accepts its credential",
    )
    parser.add_argument(
        "--log-level",
        default=default_settings.log_level,
        help="Logging level (DEBUG, INFO, WARNING)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.providers:
        providers = [p.strip().lower() for p in args.providers.split(",") if p.strip()]
    else:
        providers = default_settings.provider_list
    known = {p.value for p in Provider}
    unknown = [p for p in providers if p not in known]
    if unknown:
        print(f"Unknown providers: {', '.join(unknown)}")
        print(f"Available: {', '.join(sorted(known))}")
        sys.exit(2)

    if args.check_credentials:
        results = asyncio.run(check_credentials(providers, args.credentials_db))
        for name, valid in results.items():
            print(f"{name}: {'ok' if valid else 'needs reconnect'}")
        sys.exit(0 if all(results.values()) else 1)

    review = asyncio.run(run_review(args.year, providers, args.credentials_db))
    print(review.model_dump_json(indent=2))

    if not review.available_providers:
        sys.exit(1)


if __name__ == "__main__":
    main()
