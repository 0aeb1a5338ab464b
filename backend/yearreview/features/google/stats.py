"""Mail sampling and calendar aggregation for Google."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from yearreview.shared.dates import parse_date, parse_iso
from yearreview.shared.stats import (
    average_per_week,
    bucket_by_month,
    busiest_key,
    empty_histogram,
    round_half_up,
    scale_histogram,
)
from .schemas import BusiestDay, CalendarStatistics


# =============================================================================
# Mail
# =============================================================================

def mail_query(folder: str, year: int) -> str:
    """Gmail search for one folder over the year (``before`` is exclusive)."""
    return f"in:{folder} after:{year}/01/01 before:{year + 1}/01/01"


def date_header(message: dict) -> Optional[str]:
    headers = (message.get("payload") or {}).get("headers") or []
    for header in headers:
        if header.get("name", "").lower() == "date":
            return header.get("value")
    return None


def estimate_monthly(
    sample_dates: Sequence[Optional[datetime]], total_estimate: int, year: int
) -> list[int]:
    """Scale the sample's monthly buckets up to the estimated total.

    ``sample_dates`` holds one entry per sampled message whose metadata was
    retrieved (None when it had no usable Date header).
    """
    if not sample_dates:
        return empty_histogram()
    buckets = bucket_by_month(sample_dates, year)
    return scale_histogram(buckets, total_estimate, len(sample_dates))


# =============================================================================
# Calendar
# =============================================================================

def event_start_date(event: dict) -> Optional[date]:
    """Local start date (in the event's own offset) or the all-day date."""
    start = event.get("start") or {}
    if start.get("dateTime"):
        moment = parse_iso(start["dateTime"])
        return moment.date() if moment else None
    return parse_date(start.get("date"))


def event_duration_minutes(event: dict) -> float:
    """Duration of a timed event; all-day events count zero."""
    start = parse_iso((event.get("start") or {}).get("dateTime"))
    end = parse_iso((event.get("end") or {}).get("dateTime"))
    if start is None or end is None or end < start:
        return 0.0
    return (end - start).total_seconds() / 60


def summarize_calendar(events: Iterable[dict], year: int) -> CalendarStatistics:
    """
    Exact counts per month and per date.

    Events are dated by their local start date. Cancelled events and events
    whose start date falls outside the year are skipped, so the monthly sum
    always equals ``total_events``.
    """
    by_date: dict[date, int] = {}
    total_minutes = 0.0

    for event in events:
        if event.get("status") == "cancelled":
            continue
        day = event_start_date(event)
        if day is None or day.year != year:
            continue
        by_date[day] = by_date.get(day, 0) + 1
        total_minutes += event_duration_minutes(event)

    total = sum(by_date.values())
    by_month = empty_histogram()
    for day, count in by_date.items():
        by_month[day.month - 1] += count

    busiest = busiest_key(by_date)
    duration = round_half_up(total_minutes)
    return CalendarStatistics(
        total_events=total,
        events_by_month=by_month,
        total_duration_minutes=duration,
        total_duration_hours=round_half_up(total_minutes / 60),
        average_duration_minutes=round_half_up(total_minutes / total) if total else 0,
        average_per_week=average_per_week(total),
        busiest_day=BusiestDay(date=busiest[0], count=busiest[1]) if busiest else None,
    )
