"""
Linear statistics schemas.
"""
from typing import List

from pydantic import Field

from yearreview.features.schemas import NormalizedYearStatistics


class LinearYearStatistics(NormalizedYearStatistics):
    """
    Issues completed during the year (assigned to the user) are the
    headline count; issues created by the user are reported alongside.
    """
    issues_created: int = 0
    created_by_month: List[int] = Field(default_factory=lambda: [0] * 12)

    @property
    def issues_completed(self) -> int:
        return self.total_count
