"""
Year review schemas.
"""
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, SerializeAsAny

from yearreview.features.schemas import NormalizedYearStatistics
from yearreview.shared.constants import STATUS_AVAILABLE, STATUS_UNAVAILABLE


class ProviderReport(BaseModel):
    """
    Outcome for one provider.

    ``statistics`` is set when available; otherwise ``reason`` holds the
    error kind (``credential_expired``, ``timeout``, ...) and ``detail`` the
    message.
    """
    provider: str
    status: str = Field(..., pattern=f"^({STATUS_AVAILABLE}|{STATUS_UNAVAILABLE})$")
    statistics: Optional[SerializeAsAny[NormalizedYearStatistics]] = None
    reason: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def available(cls, statistics: NormalizedYearStatistics) -> "ProviderReport":
        return cls(provider=statistics.provider, status=STATUS_AVAILABLE, statistics=statistics)

    @classmethod
    def unavailable(cls, provider: str, reason: str, detail: Optional[str] = None) -> "ProviderReport":
        return cls(provider=provider, status=STATUS_UNAVAILABLE, reason=reason, detail=detail)

    @property
    def is_available(self) -> bool:
        return self.status == STATUS_AVAILABLE


class YearReview(BaseModel):
    """All provider reports for one year, keyed by provider name."""
    year: int
    generated_at: datetime
    reports: Dict[str, ProviderReport] = Field(default_factory=dict)

    @property
    def available_providers(self) -> list[str]:
        return [name for name, report in self.reports.items() if report.is_available]
