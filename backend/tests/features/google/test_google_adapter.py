"""
Tests for GoogleAdapter (Gmail sampling, Calendar aggregation, token renewal).
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from yearreview.credentials import CredentialStore, GoogleOAuth, ProviderCredential
from yearreview.features.google import GoogleAdapter, mail_query, summarize_calendar
from yearreview.shared.errors import CredentialExpiredError, ProviderFetchError

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Data
# =============================================================================

SENT_DATES = (
    ["Mon, 15 Jan 2024 10:00:00 +0000"] * 25
    + ["Thu, 15 Feb 2024 10:00:00 +0000"] * 15
    + ["Fri, 15 Mar 2024 10:00:00 +0000"] * 10
)

EVENTS_PAGE_1 = [
    {
        "id": "a",
        "status": "confirmed",
        "start": {"dateTime": "2024-03-05T09:00:00+05:00"},
        "end": {"dateTime": "2024-03-05T10:30:00+05:00"},
    },
    {"id": "b", "status": "confirmed", "start": {"date": "2024-03-05"}, "end": {"date": "2024-03-06"}},
    {
        "id": "c",
        "status": "cancelled",
        "start": {"dateTime": "2024-03-06T09:00:00Z"},
        "end": {"dateTime": "2024-03-06T10:00:00Z"},
    },
]

EVENTS_PAGE_2 = [
    {
        "id": "d",
        "status": "confirmed",
        "start": {"dateTime": "2024-12-31T23:30:00-05:00"},
        "end": {"dateTime": "2025-01-01T00:30:00-05:00"},
    },
    {
        "id": "f",
        "status": "confirmed",
        "start": {"dateTime": "2024-07-10T10:00:00Z"},
        "end": {"dateTime": "2024-07-10T10:30:00Z"},
    },
]


def message(message_id, date_value):
    return {"id": message_id, "payload": {"headers": [{"name": "Date", "value": date_value}]}}


def messages_handler(request):
    query = request.url.params["q"]
    if query.startswith("in:sent"):
        return httpx.Response(200, json={
            "resultSizeEstimate": 200,
            "messages": [{"id": f"s{i}"} for i in range(60)],
        })
    return httpx.Response(200, json={
        "resultSizeEstimate": 10,
        "messages": [{"id": "i0"}, {"id": "i1"}],
    })


def events_handler(request):
    if request.url.params.get("pageToken") == "p2":
        return httpx.Response(200, json={"items": EVENTS_PAGE_2})
    return httpx.Response(200, json={"items": EVENTS_PAGE_1, "nextPageToken": "p2"})


@pytest.fixture
def google_routes(routes):
    routes.json("POST", "/token", {"access_token": "fresh-token", "expires_in": 3600})
    routes.json("GET", "/oauth2/v2/userinfo", {"id": "1001", "email": "me@example.com", "name": "Me"})
    routes.add("GET", "/gmail/v1/users/me/messages", messages_handler)
    for i, value in enumerate(SENT_DATES):
        routes.json("GET", f"/gmail/v1/users/me/messages/s{i}", message(f"s{i}", value))
    routes.json("GET", "/gmail/v1/users/me/messages/i0", message("i0", "Sat, 15 Jun 2024 08:00:00 +0000"))
    routes.add("GET", "/gmail/v1/users/me/messages/i1", httpx.Response(500, text="backend error"))
    routes.add("GET", "/calendar/v3/calendars/primary/events", events_handler)
    return routes


@pytest.fixture
def google_store(test_settings, google_routes):
    oauth = GoogleOAuth(
        client_id=test_settings.google_client_id,
        client_secret=test_settings.google_client_secret,
        token_url=test_settings.google_token_url,
        transport=google_routes.transport,
    )
    store = CredentialStore(refreshers={"google": oauth}, clock=lambda: FIXED_NOW)
    store.set("google", ProviderCredential("stale-token", "refresh-1", FIXED_NOW - timedelta(hours=1)))
    return store


@pytest.fixture
def adapter(google_store, test_settings, google_routes):
    return GoogleAdapter(google_store, test_settings, transport=google_routes.transport)


# =============================================================================
# Test Statistics
# =============================================================================

class TestYearStatistics:
    """End-to-end Google statistics."""

    @pytest.mark.asyncio
    async def test_calendar_is_headline(self, adapter):
        stats = await adapter.get_year_statistics(2024)

        assert stats.provider == "google"
        assert stats.identity.email == "me@example.com"
        assert stats.total_count == 4
        assert sum(stats.monthly) == stats.total_count
        assert stats.monthly_estimated is False
        assert stats.average_per_week == 0.1

    @pytest.mark.asyncio
    async def test_mail_sampling_extrapolated(self, adapter, google_routes):
        stats = await adapter.get_year_statistics(2024)
        mail = stats.mail

        assert mail.estimated is True
        assert mail.total_sent == 200
        assert mail.sent_sample_size == 50
        assert mail.sent_by_month[:3] == [100, 60, 40]
        assert sum(mail.sent_by_month) == 200
        # only the first 50 listed ids are sampled
        assert google_routes.calls_to("/gmail/v1/users/me/messages/s55") == []

    @pytest.mark.asyncio
    async def test_failed_message_excluded_from_sample(self, adapter):
        stats = await adapter.get_year_statistics(2024)
        mail = stats.mail

        assert mail.total_received == 10
        assert mail.received_sample_size == 1
        assert mail.received_by_month[5] == 10

    @pytest.mark.asyncio
    async def test_mail_queries_cover_whole_year(self, adapter, google_routes):
        await adapter.get_year_statistics(2024)

        queries = sorted(
            r.url.params["q"] for r in google_routes.calls_to("/gmail/v1/users/me/messages")
        )
        assert queries == [
            "in:inbox after:2024/01/01 before:2025/01/01",
            "in:sent after:2024/01/01 before:2025/01/01",
        ]


# =============================================================================
# Test Partial Results
# =============================================================================

class TestCalendarCoverage:
    """A calendar cut short keeps its events and says so."""

    @pytest.mark.asyncio
    async def test_complete_calendar_is_exact(self, adapter):
        stats = await adapter.get_year_statistics(2024)

        assert stats.coverage.lower_bound is False
        assert stats.coverage.failed == 0

    @pytest.mark.asyncio
    async def test_later_page_failure_keeps_first_page(self, adapter, google_routes):
        def handler(request):
            if request.url.params.get("pageToken") == "p2":
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json={"items": EVENTS_PAGE_1, "nextPageToken": "p2"})

        google_routes.add("GET", "/calendar/v3/calendars/primary/events", handler)

        stats = await adapter.get_year_statistics(2024)

        assert stats.total_count == 2
        assert stats.coverage.lower_bound is True
        assert stats.coverage.failed_resources == ["calendar events"]
        assert stats.mail.total_sent == 200

    @pytest.mark.asyncio
    async def test_later_malformed_page_keeps_first_page(self, adapter, google_routes):
        def handler(request):
            if request.url.params.get("pageToken") == "p2":
                return httpx.Response(200, text="<html>")
            return httpx.Response(200, json={"items": EVENTS_PAGE_1, "nextPageToken": "p2"})

        google_routes.add("GET", "/calendar/v3/calendars/primary/events", handler)

        stats = await adapter.get_year_statistics(2024)

        assert stats.total_count == 2
        assert stats.coverage.failed == 1

    @pytest.mark.asyncio
    async def test_page_cap_marks_lower_bound(self, adapter, google_routes, test_settings):
        test_settings.calendar_max_pages = 1

        stats = await adapter.get_year_statistics(2024)

        assert stats.total_count == 2
        assert stats.coverage.truncated == 1
        assert stats.coverage.lower_bound is True
        assert len(google_routes.calls_to("/calendar/v3/calendars/primary/events")) == 1

    @pytest.mark.asyncio
    async def test_first_page_failure_aborts_report(self, adapter, google_routes):
        google_routes.add(
            "GET", "/calendar/v3/calendars/primary/events", httpx.Response(503, text="down")
        )

        with pytest.raises(ProviderFetchError):
            await adapter.get_year_statistics(2024)


class TestMailFailure:
    """A failed mail listing stops the other branches of the report."""

    @pytest.mark.asyncio
    async def test_inbox_sampling_stops_when_sent_listing_fails(
        self, adapter, google_routes, test_settings
    ):
        test_settings.gmail_call_delay_seconds = 0.01

        def handler(request):
            if request.url.params["q"].startswith("in:sent"):
                return httpx.Response(500, text="backend error")
            return httpx.Response(200, json={
                "resultSizeEstimate": 50,
                "messages": [{"id": f"r{i}"} for i in range(50)],
            })

        google_routes.add("GET", "/gmail/v1/users/me/messages", handler)
        for i in range(50):
            google_routes.json(
                "GET", f"/gmail/v1/users/me/messages/r{i}",
                message(f"r{i}", "Sat, 15 Jun 2024 08:00:00 +0000"),
            )

        def sampled():
            return [r for r in google_routes.calls if "/messages/r" in r.url.path]

        with pytest.raises(ProviderFetchError):
            await adapter.get_year_statistics(2024)

        calls_at_failure = len(sampled())
        await adapter.close()
        await asyncio.sleep(0.05)

        assert len(sampled()) == calls_at_failure
        assert calls_at_failure < 50
        assert adapter.api.is_closed is True


# =============================================================================
# Test Token Renewal
# =============================================================================

class TestTokenRenewal:
    """The adapter only ever sees renewed tokens."""

    @pytest.mark.asyncio
    async def test_expired_token_refreshed_once(self, adapter, google_routes, google_store):
        await adapter.get_year_statistics(2024)

        assert len(google_routes.calls_to("/token")) == 1
        api_calls = [r for r in google_routes.calls if r.url.path != "/token"]
        assert all(r.headers["Authorization"] == "Bearer fresh-token" for r in api_calls)
        assert google_store.get("google").expires_at == FIXED_NOW + timedelta(seconds=3300)

    @pytest.mark.asyncio
    async def test_refresh_failure_aborts_report(self, adapter, google_routes, google_store):
        google_routes.json("POST", "/token", {"error": "invalid_grant"}, status=400)

        with pytest.raises(CredentialExpiredError):
            await adapter.get_year_statistics(2024)

        assert google_store.get("google") is None
        assert google_routes.calls_to("/oauth2/v2/userinfo") == []


# =============================================================================
# Test Calendar Aggregation
# =============================================================================

class TestSummarizeCalendar:
    """Tests for summarize_calendar."""

    def test_exact_counts(self):
        calendar = summarize_calendar(EVENTS_PAGE_1 + EVENTS_PAGE_2, 2024)

        assert calendar.total_events == 4
        assert calendar.events_by_month[2] == 2
        assert calendar.events_by_month[6] == 1
        assert calendar.events_by_month[11] == 1
        assert sum(calendar.events_by_month) == calendar.total_events

    def test_durations_only_for_timed_events(self):
        calendar = summarize_calendar(EVENTS_PAGE_1 + EVENTS_PAGE_2, 2024)

        assert calendar.total_duration_minutes == 180
        assert calendar.total_duration_hours == 3
        assert calendar.average_duration_minutes == 45

    def test_busiest_day(self):
        calendar = summarize_calendar(EVENTS_PAGE_1 + EVENTS_PAGE_2, 2024)

        assert calendar.busiest_day.date == date(2024, 3, 5)
        assert calendar.busiest_day.count == 2

    def test_busiest_day_tie_keeps_first_date(self):
        events = [
            {"start": {"date": "2024-02-01"}},
            {"start": {"date": "2024-01-01"}},
        ]
        assert summarize_calendar(events, 2024).busiest_day.date == date(2024, 2, 1)

    def test_events_outside_year_skipped(self):
        events = [
            {"start": {"date": "2025-01-01"}},
            {"start": {"dateTime": "2023-12-31T23:00:00+00:00"}},
        ]
        calendar = summarize_calendar(events, 2024)

        assert calendar.total_events == 0
        assert calendar.busiest_day is None
        assert calendar.average_duration_minutes == 0

    def test_mail_query(self):
        assert mail_query("sent", 2024) == "in:sent after:2024/01/01 before:2025/01/01"
