"""
Year review aggregation.

Usage:
    from yearreview.features.review import YearReviewService, build_adapters
"""

from .schemas import ProviderReport, YearReview
from .service import (
    ADAPTER_CLASSES,
    YearReviewService,
    build_adapters,
    build_credential_store,
)

__all__ = [
    "ProviderReport",
    "YearReview",
    "ADAPTER_CLASSES",
    "YearReviewService",
    "build_adapters",
    "build_credential_store",
]
