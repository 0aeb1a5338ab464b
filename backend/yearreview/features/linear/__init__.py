"""
Linear integration.

Usage:
    from yearreview.features.linear import LinearAdapter
"""

from .client import LinearAdapter
from .schemas import LinearYearStatistics
from .stats import completed_in_year, created_in_year, top_projects

__all__ = [
    "LinearAdapter",
    "LinearYearStatistics",
    "completed_in_year",
    "created_in_year",
    "top_projects",
]
