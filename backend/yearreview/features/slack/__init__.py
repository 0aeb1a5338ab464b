"""
Slack integration.

Usage:
    from yearreview.features.slack import SlackAdapter
"""

from .client import SlackAdapter
from .schemas import SlackYearStatistics
from .stats import MessageSummary, is_user_message

__all__ = [
    "SlackAdapter",
    "SlackYearStatistics",
    "MessageSummary",
    "is_user_message",
]
