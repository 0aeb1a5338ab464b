"""
Shared utilities (NOT provider logic).

Usage:
    from yearreview.shared import ApiClient, Paginator, Provider
    from yearreview.shared.stats import scale_histogram
"""
from .constants import (
    Provider,
    MONTHS_IN_YEAR,
    WEEKS_IN_YEAR,
    DEFAULT_TOP_N,
    STATUS_AVAILABLE,
    STATUS_UNAVAILABLE,
)
from .errors import (
    YearReviewError,
    CredentialError,
    CredentialExpiredError,
    ReauthorizationRequiredError,
    OAuthError,
    ProviderFetchError,
    ProviderRateLimitError,
    MalformedResponseError,
    SUB_RESOURCE_ERRORS,
)
from .http import ApiClient
from .tasks import run_concurrently
from .pagination import (
    Page,
    Paginator,
    PaginationStyle,
    PacingStrategy,
    NoPacing,
    FixedDelay,
    pacing_for,
)
from .stats import (
    empty_histogram,
    bucket_by_month,
    scale_histogram,
    rank_top,
    busiest_key,
    average_per_day,
    average_per_week,
)

__all__ = [
    # Constants
    "Provider",
    "MONTHS_IN_YEAR",
    "WEEKS_IN_YEAR",
    "DEFAULT_TOP_N",
    "STATUS_AVAILABLE",
    "STATUS_UNAVAILABLE",
    # Errors
    "YearReviewError",
    "CredentialError",
    "CredentialExpiredError",
    "ReauthorizationRequiredError",
    "OAuthError",
    "ProviderFetchError",
    "ProviderRateLimitError",
    "MalformedResponseError",
    "SUB_RESOURCE_ERRORS",
    # HTTP / pagination
    "ApiClient",
    "Page",
    "Paginator",
    "PaginationStyle",
    "PacingStrategy",
    "NoPacing",
    "FixedDelay",
    "pacing_for",
    "run_concurrently",
    # Stats
    "empty_histogram",
    "bucket_by_month",
    "scale_histogram",
    "rank_top",
    "busiest_key",
    "average_per_day",
    "average_per_week",
]
