"""
Shared constants for all providers.
"""

from enum import Enum


class Provider(str, Enum):
    """External services a review can draw from."""

    GITHUB = "github"
    GOOGLE = "google"
    SLACK = "slack"
    LINEAR = "linear"


MONTHS_IN_YEAR = 12
WEEKS_IN_YEAR = 52

# Size of ranked breakdowns (top repositories, channels, projects)
DEFAULT_TOP_N = 5

# Report statuses
STATUS_AVAILABLE = "available"
STATUS_UNAVAILABLE = "unavailable"
