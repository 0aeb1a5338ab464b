"""
Normalized statistics schemas.

Pydantic models crossing the core/presentation boundary. Every provider
report is a NormalizedYearStatistics (or a subclass adding provider fields).
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional

from yearreview.shared.constants import DEFAULT_TOP_N, MONTHS_IN_YEAR


class Identity(BaseModel):
    """Account the statistics belong to."""
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    handle: Optional[str] = None


class TopEntry(BaseModel):
    """One ranked entity (repository, channel, project)."""
    label: str
    count: int = Field(..., ge=0)
    attributes: Dict[str, Any] = Field(default_factory=dict)


class Coverage(BaseModel):
    """
    How much of the provider was actually probed.

    When ``lower_bound`` is set, counts cover only the probed subset: some
    sub-resources were skipped by the fan-out limit, failed, or were cut
    off by a per-resource record cap.
    """
    probed: int = 0
    available: int = 0
    limit: Optional[int] = None
    failed: int = 0
    failed_resources: List[str] = Field(default_factory=list)
    truncated: int = 0
    lower_bound: bool = False

    def finalize(self) -> "Coverage":
        self.lower_bound = (
            self.probed < self.available or self.failed > 0 or self.truncated > 0
        )
        return self


class NormalizedYearStatistics(BaseModel):
    """Common per-provider yearly report."""
    provider: str
    year: int
    identity: Identity
    total_count: int = Field(..., ge=0)
    monthly: List[int] = Field(default_factory=lambda: [0] * MONTHS_IN_YEAR)
    monthly_estimated: bool = False
    top_entities: List[TopEntry] = Field(default_factory=list)
    average_per_day: Optional[float] = None
    average_per_week: Optional[float] = None
    coverage: Optional[Coverage] = None

    @field_validator('monthly')
    @classmethod
    def check_monthly(cls, v: List[int]) -> List[int]:
        """Exactly 12 non-negative buckets."""
        if len(v) != MONTHS_IN_YEAR:
            raise ValueError(f"monthly must have {MONTHS_IN_YEAR} entries")
        if any(count < 0 for count in v):
            raise ValueError("monthly entries must be non-negative")
        return v

    @field_validator('top_entities')
    @classmethod
    def check_top_entities(cls, v: List[TopEntry]) -> List[TopEntry]:
        if len(v) > DEFAULT_TOP_N:
            raise ValueError(f"at most {DEFAULT_TOP_N} top entities")
        return v
