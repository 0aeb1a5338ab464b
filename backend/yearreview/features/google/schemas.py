"""
Google statistics schemas.
"""
import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from yearreview.features.schemas import NormalizedYearStatistics


def _months() -> List[int]:
    return [0] * 12


class MailStatistics(BaseModel):
    """
    Gmail sent/received volume.

    Totals are Gmail's ``resultSizeEstimate``. The monthly lists are
    extrapolated from a sample taken from the head of the result list, so
    they are estimates and may be biased toward recent mail.
    """
    total_sent: int = 0
    total_received: int = 0
    sent_by_month: List[int] = Field(default_factory=_months)
    received_by_month: List[int] = Field(default_factory=_months)
    sent_sample_size: int = 0
    received_sample_size: int = 0
    estimated: bool = True
    average_sent_per_day: float = 0.0
    average_received_per_day: float = 0.0


class BusiestDay(BaseModel):
    date: datetime.date
    count: int


class CalendarStatistics(BaseModel):
    """Exact calendar event counts (recurring events expanded)."""
    total_events: int = 0
    events_by_month: List[int] = Field(default_factory=_months)
    total_duration_minutes: int = 0
    total_duration_hours: int = 0
    average_duration_minutes: int = 0
    average_per_week: float = 0.0
    busiest_day: Optional[BusiestDay] = None


class GoogleYearStatistics(NormalizedYearStatistics):
    """
    Calendar events are the headline count; mail lives in its own section
    because its distribution is estimated.
    """
    mail: MailStatistics
    calendar: CalendarStatistics
