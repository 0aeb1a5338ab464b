"""
Timestamp parsing and calendar-year boundaries.

Providers report time in three shapes: ISO 8601 strings (GitHub, Linear,
Google Calendar), epoch strings with a fractional part (Slack ``ts``) and
RFC 2822 mail headers (Gmail ``Date``). All helpers return None instead of
raising when a value cannot be interpreted.
"""

import calendar
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


def year_start(year: int) -> datetime:
    """First instant of the year (UTC)."""
    return datetime(year, 1, 1, tzinfo=timezone.utc)


def year_end(year: int) -> datetime:
    """Last whole second of the year (UTC)."""
    return datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def to_iso_z(value: datetime) -> str:
    """Format as ``2024-01-01T00:00:00Z``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp.

    Naive values are assumed to be UTC. The original offset is preserved so
    callers can choose between the local date and the UTC instant.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse an all-day ``YYYY-MM-DD`` value."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_epoch(value) -> Optional[datetime]:
    """Parse ``"1709251200.000200"`` style epoch seconds."""
    if value is None or value == "":
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_mail_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 ``Date`` header into a UTC datetime."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
