"""Histogram, ranking and rate helpers shared by all providers."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from .constants import DEFAULT_TOP_N, MONTHS_IN_YEAR, WEEKS_IN_YEAR
from .dates import days_in_year

T = TypeVar("T")


def empty_histogram() -> list[int]:
    return [0] * MONTHS_IN_YEAR


def bucket_by_month(
    moments: Iterable[Optional[date | datetime]], year: int
) -> list[int]:
    """Count moments per month of ``year``.

    Moments that are None or fall outside the year are skipped, so the sum
    can be lower than the number of inputs.
    """
    months = empty_histogram()
    for moment in moments:
        if moment is None or moment.year != year:
            continue
        months[moment.month - 1] += 1
    return months


def round_half_up(value: float) -> int:
    """Round .5 away from zero (``round()`` would round to even)."""
    return int(math.floor(value + 0.5))


def scale_histogram(
    sample_buckets: Sequence[int], total_estimate: int, sample_size: int
) -> list[int]:
    """Extrapolate a sampled monthly distribution to the estimated total.

    Every bucket becomes ``round(b * total_estimate / sample_size)``. The
    result is an estimate; its sum only approximates ``total_estimate``.

    >>> scale_histogram([5, 3, 2] + [0] * 9, 200, 50)[:3]
    [20, 12, 8]
    """
    if sample_size <= 0 or total_estimate <= 0:
        return empty_histogram()
    factor = total_estimate / sample_size
    return [round_half_up(count * factor) for count in sample_buckets]


def rank_top(
    entries: Iterable[T],
    count: Callable[[T], int],
    limit: int = DEFAULT_TOP_N,
) -> list[T]:
    """Highest counts first, ties keep input order, at most ``limit`` items."""
    return sorted(entries, key=lambda entry: -count(entry))[:limit]


def busiest_key(counts: dict[Hashable, int]) -> Optional[tuple[Hashable, int]]:
    """Key with the highest count; first inserted key wins ties."""
    best = None
    for key, value in counts.items():
        if best is None or value > best[1]:
            best = (key, value)
    return best


def average_per_day(total: int, year: int) -> float:
    return round(total / days_in_year(year), 1)


def average_per_week(total: int) -> float:
    return round(total / WEEKS_IN_YEAR, 1)
