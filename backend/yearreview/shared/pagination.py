"""
Paginated, paced retrieval.

A Paginator drives one cursor chain against a provider endpoint and hands
out record batches on demand. Pages of one chain are strictly sequential:
page N+1 is requested only after page N completed and the pacing delay
elapsed.

Styles:
- OFFSET: cursor is a page number; the next page is requested only when the
  current raw page was full
- CURSOR: opaque continuation token returned by the fetch function
- GRAPHQL: connection ``pageInfo.endCursor``, same loop as CURSOR
- SINGLE: one call, no loop (count-estimate endpoints)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from .errors import SUB_RESOURCE_ERRORS

logger = logging.getLogger(__name__)


Cursor = Union[str, int]


class PaginationStyle(str, Enum):
    OFFSET = "offset"
    CURSOR = "cursor"
    GRAPHQL = "graphql"
    SINGLE = "single"


@dataclass
class Page:
    """One provider response: raw records plus the continuation cursor."""

    records: list[Any] = field(default_factory=list)
    next_cursor: Optional[Cursor] = None


FetchPage = Callable[[Optional[Cursor]], Awaitable[Page]]


# =============================================================================
# Pacing
# =============================================================================

class PacingStrategy:
    """Waits between two calls of the same chain."""

    async def pause(self, calls_made: int) -> None:
        raise NotImplementedError


class NoPacing(PacingStrategy):
    async def pause(self, calls_made: int) -> None:
        return None


class FixedDelay(PacingStrategy):
    """Constant delay, the rate-limit mitigation used by all providers."""

    def __init__(
        self,
        seconds: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.seconds = seconds
        self._sleep = sleep

    async def pause(self, calls_made: int) -> None:
        if self.seconds > 0:
            await self._sleep(self.seconds)


def pacing_for(seconds: float) -> PacingStrategy:
    """FixedDelay for positive delays, NoPacing otherwise."""
    return FixedDelay(seconds) if seconds > 0 else NoPacing()


# =============================================================================
# Paginator
# =============================================================================

class Paginator:
    """
    Lazy, finite, non-restartable sequence of record batches.

    Usage:
        async def fetch(cursor):
            data = await api.request("GET", "/items", params={"cursor": cursor})
            return Page(data["items"], data.get("next"))

        paginator = Paginator(fetch, PaginationStyle.CURSOR, resource="items")
        async for batch in paginator:
            ...

    Raises ProviderFetchError (or MalformedResponseError) from iteration when
    a page fails; ``partial`` is True if earlier batches were already handed
    out.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        style: PaginationStyle = PaginationStyle.CURSOR,
        *,
        resource: str = "",
        pacing: Optional[PacingStrategy] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        max_records: Optional[int] = None,
        record_filter: Optional[Callable[[Any], bool]] = None,
        first_cursor: Optional[Cursor] = None,
    ):
        if style == PaginationStyle.OFFSET and not page_size:
            raise ValueError("OFFSET pagination needs a page_size")
        self.fetch_page = fetch_page
        self.style = style
        self.resource = resource
        self.pacing = pacing or NoPacing()
        self.page_size = page_size
        self.max_pages = 1 if style == PaginationStyle.SINGLE else max_pages
        self.max_records = max_records
        self.record_filter = record_filter
        self.first_cursor = first_cursor
        if style == PaginationStyle.OFFSET and first_cursor is None:
            self.first_cursor = 1

        self.pages_fetched = 0
        self.records_accumulated = 0
        self.truncated = False
        self._started = False

    def __aiter__(self) -> AsyncIterator[list[Any]]:
        if self._started:
            raise RuntimeError(f"Paginator for {self.resource} already consumed")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[list[Any]]:
        cursor = self.first_cursor

        while True:
            try:
                page = await self.fetch_page(cursor)
            except SUB_RESOURCE_ERRORS as e:
                raise e.with_partial(self.pages_fetched > 0) from e

            self.pages_fetched += 1
            next_cursor = self._next_cursor(cursor, page)

            records = page.records
            if self.record_filter is not None:
                records = [r for r in records if self.record_filter(r)]

            if self.max_records is not None:
                remaining = self.max_records - self.records_accumulated
                if len(records) >= remaining:
                    if len(records) > remaining or next_cursor:
                        self.truncated = True
                    records = records[:remaining]

            self.records_accumulated += len(records)
            logger.debug(
                f"{self.resource}: page {self.pages_fetched}, "
                f"{len(records)} records ({self.records_accumulated} total)"
            )
            yield records

            if not next_cursor:
                return
            if self.truncated:
                return
            if self.max_pages is not None and self.pages_fetched >= self.max_pages:
                self.truncated = True
                return

            await self.pacing.pause(self.pages_fetched)
            cursor = next_cursor

    def _next_cursor(self, cursor: Optional[Cursor], page: Page) -> Optional[Cursor]:
        if self.style == PaginationStyle.SINGLE:
            return None
        if self.style == PaginationStyle.OFFSET:
            if len(page.records) < self.page_size:
                return None
            return int(cursor) + 1
        return page.next_cursor or None

    async def collect(self) -> list[Any]:
        """Consume every batch and return all records."""
        records: list[Any] = []
        async for batch in self:
            records.extend(batch)
        return records
