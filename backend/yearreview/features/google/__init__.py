"""
Google integration (Gmail + Calendar).

Usage:
    from yearreview.features.google import GoogleAdapter
"""

from .client import GoogleAdapter
from .schemas import (
    BusiestDay,
    CalendarStatistics,
    GoogleYearStatistics,
    MailStatistics,
)
from .stats import estimate_monthly, mail_query, summarize_calendar

__all__ = [
    "GoogleAdapter",
    "BusiestDay",
    "CalendarStatistics",
    "GoogleYearStatistics",
    "MailStatistics",
    "estimate_monthly",
    "mail_query",
    "summarize_calendar",
]
