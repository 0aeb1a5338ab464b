"""
Tests for the Paginator.

Pages are served by small in-memory fetch functions, so no HTTP is involved.
"""

import pytest

from yearreview.shared.errors import MalformedResponseError, ProviderFetchError
from yearreview.shared.pagination import (
    FixedDelay,
    NoPacing,
    Page,
    PaginationStyle,
    Paginator,
    pacing_for,
)


def cursor_pages(pages):
    """Fetch function over a list of record lists; cursors are list indexes."""
    calls = []

    async def fetch(cursor):
        index = int(cursor or 0)
        calls.append(cursor)
        next_cursor = str(index + 1) if index + 1 < len(pages) else None
        return Page(pages[index], next_cursor)

    return fetch, calls


class RecordingSleep:
    def __init__(self):
        self.waits = []

    async def __call__(self, seconds):
        self.waits.append(seconds)


# =============================================================================
# Test Cursor Pagination
# =============================================================================

class TestCursorPagination:
    """Tests for CURSOR and GRAPHQL styles."""

    @pytest.mark.asyncio
    async def test_follows_cursor_until_empty(self):
        fetch, calls = cursor_pages([[1, 2], [3], [4, 5]])
        paginator = Paginator(fetch, PaginationStyle.CURSOR, resource="items")

        batches = [batch async for batch in paginator]

        assert batches == [[1, 2], [3], [4, 5]]
        assert calls == [None, "1", "2"]
        assert paginator.pages_fetched == 3
        assert paginator.records_accumulated == 5
        assert paginator.truncated is False

    @pytest.mark.asyncio
    async def test_graphql_style_uses_same_loop(self):
        fetch, _ = cursor_pages([["a"], ["b"]])
        records = await Paginator(fetch, PaginationStyle.GRAPHQL).collect()
        assert records == ["a", "b"]

    @pytest.mark.asyncio
    async def test_max_pages_marks_truncated(self):
        fetch, calls = cursor_pages([[1], [2], [3]])
        paginator = Paginator(fetch, max_pages=2)

        assert await paginator.collect() == [1, 2]
        assert len(calls) == 2
        assert paginator.truncated is True

    @pytest.mark.asyncio
    async def test_max_pages_on_last_page_not_truncated(self):
        fetch, _ = cursor_pages([[1], [2]])
        paginator = Paginator(fetch, max_pages=2)

        await paginator.collect()
        assert paginator.truncated is False

    @pytest.mark.asyncio
    async def test_cannot_iterate_twice(self):
        fetch, _ = cursor_pages([[1]])
        paginator = Paginator(fetch)
        await paginator.collect()

        with pytest.raises(RuntimeError):
            paginator.__aiter__()


# =============================================================================
# Test Offset Pagination
# =============================================================================

class TestOffsetPagination:
    """Tests for OFFSET style."""

    @pytest.mark.asyncio
    async def test_stops_on_short_page(self):
        requested = []
        data = {1: [1, 2], 2: [3, 4], 3: [5]}

        async def fetch(page):
            requested.append(page)
            return Page(data[page])

        records = await Paginator(fetch, PaginationStyle.OFFSET, page_size=2).collect()

        assert records == [1, 2, 3, 4, 5]
        assert requested == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_full_last_page_requests_one_more(self):
        requested = []
        data = {1: [1, 2], 2: []}

        async def fetch(page):
            requested.append(page)
            return Page(data[page])

        records = await Paginator(fetch, PaginationStyle.OFFSET, page_size=2).collect()

        assert records == [1, 2]
        assert requested == [1, 2]

    def test_requires_page_size(self):
        async def fetch(page):
            return Page([])

        with pytest.raises(ValueError):
            Paginator(fetch, PaginationStyle.OFFSET)


class TestSinglePagination:
    """Tests for SINGLE style."""

    @pytest.mark.asyncio
    async def test_one_call_even_with_cursor(self):
        fetch, calls = cursor_pages([[42], [43]])
        paginator = Paginator(fetch, PaginationStyle.SINGLE)

        assert await paginator.collect() == [42]
        assert len(calls) == 1
        assert paginator.truncated is False


# =============================================================================
# Test Filtering and Caps
# =============================================================================

class TestRecordCap:
    """Tests for record_filter and max_records."""

    @pytest.mark.asyncio
    async def test_filter_applies_before_cap(self):
        fetch, _ = cursor_pages([[1, 2, 3, 4], [5, 6, 7, 8]])
        paginator = Paginator(
            fetch, record_filter=lambda r: r % 2 == 0, max_records=3
        )

        records = await paginator.collect()

        assert records == [2, 4, 6]
        assert paginator.truncated is True
        assert paginator.records_accumulated == 3

    @pytest.mark.asyncio
    async def test_cap_reached_stops_fetching(self):
        fetch, calls = cursor_pages([[1, 2], [3, 4], [5, 6]])
        paginator = Paginator(fetch, max_records=2)

        assert await paginator.collect() == [1, 2]
        assert len(calls) == 1
        assert paginator.truncated is True

    @pytest.mark.asyncio
    async def test_cap_exactly_met_on_last_page(self):
        fetch, _ = cursor_pages([[1], [2]])
        paginator = Paginator(fetch, max_records=2)

        assert await paginator.collect() == [1, 2]
        assert paginator.truncated is False


# =============================================================================
# Test Failures
# =============================================================================

class TestPageFailure:
    """Tests for errors raised by the fetch function."""

    @pytest.mark.asyncio
    async def test_first_page_failure_not_partial(self):
        async def fetch(cursor):
            raise ProviderFetchError("slack", "channels", status=500)

        with pytest.raises(ProviderFetchError) as exc_info:
            await Paginator(fetch).collect()
        assert exc_info.value.partial is False

    @pytest.mark.asyncio
    async def test_later_page_failure_is_partial(self):
        async def fetch(cursor):
            if cursor:
                raise ProviderFetchError("slack", "channels", status=502)
            return Page([1, 2], "next")

        received = []
        with pytest.raises(ProviderFetchError) as exc_info:
            async for batch in Paginator(fetch):
                received.extend(batch)

        assert received == [1, 2]
        assert exc_info.value.partial is True
        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_later_malformed_page_is_partial(self):
        async def fetch(cursor):
            if cursor:
                raise MalformedResponseError("linear", "issues", "missing issues connection")
            return Page([1], "next")

        with pytest.raises(MalformedResponseError) as exc_info:
            await Paginator(fetch, PaginationStyle.GRAPHQL).collect()

        assert exc_info.value.partial is True
        assert exc_info.value.detail == "missing issues connection"


# =============================================================================
# Test Pacing
# =============================================================================

class TestPacing:
    """Tests for pacing strategies."""

    @pytest.mark.asyncio
    async def test_pause_only_between_pages(self):
        sleep = RecordingSleep()
        fetch, _ = cursor_pages([[1], [2], [3]])

        await Paginator(fetch, pacing=FixedDelay(0.2, sleep=sleep)).collect()

        assert sleep.waits == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_zero_delay_never_sleeps(self):
        sleep = RecordingSleep()
        await FixedDelay(0, sleep=sleep).pause(1)
        assert sleep.waits == []

    def test_pacing_for(self):
        assert isinstance(pacing_for(0), NoPacing)
        assert isinstance(pacing_for(0.05), FixedDelay)
