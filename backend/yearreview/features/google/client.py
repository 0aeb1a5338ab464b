"""
Google adapter (Gmail + Calendar).

The only provider with short-lived tokens: every call borrows a token via
``CredentialStore.ensure_valid``, which renews it through GoogleOAuth when
expired.

Mail totals are Gmail's own estimates; the monthly mail distribution is
extrapolated from a small sample (see ``MailStatistics``). Calendar counts
are exact unless ``coverage`` marks them as a lower bound.
"""

import logging
from typing import Optional

from yearreview.features.base import ProviderAdapter
from yearreview.features.schemas import Coverage, Identity
from yearreview.shared.constants import Provider
from yearreview.shared.dates import parse_mail_date, to_iso_z, year_end, year_start
from yearreview.shared.errors import SUB_RESOURCE_ERRORS, MalformedResponseError, ProviderFetchError
from yearreview.shared.pagination import Page, PaginationStyle, Paginator, pacing_for
from yearreview.shared.stats import average_per_day
from yearreview.shared.tasks import run_concurrently
from .schemas import CalendarStatistics, GoogleYearStatistics, MailStatistics
from .stats import date_header, estimate_monthly, mail_query, summarize_calendar

logger = logging.getLogger(__name__)


class GoogleAdapter(ProviderAdapter):
    """
    Google yearly statistics.

    Usage:
        store = CredentialStore(refreshers={"google": GoogleOAuth()})
        adapter = GoogleAdapter(store)
        stats = await adapter.get_year_statistics(2024)
    """

    provider = Provider.GOOGLE

    def base_url(self) -> str:
        return self.settings.google_api_url

    async def _get(self, path: str, params: Optional[dict] = None, resource: Optional[str] = None):
        return await self.api.request(
            "GET", path, token=await self.token(), params=params, resource=resource
        )

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def get_identity(self) -> Identity:
        try:
            data = await self._get("/oauth2/v2/userinfo", resource="userinfo")
        except ProviderFetchError as e:
            if e.status == 401:
                raise self.credentials.reject(self.name, "401 Unauthorized") from e
            raise
        if not isinstance(data, dict):
            raise MalformedResponseError(self.name, "userinfo", "expected an object")
        return Identity(
            id=data.get("id"),
            name=data.get("name"),
            email=data.get("email"),
            handle=data.get("email"),
        )

    # -------------------------------------------------------------------------
    # Mail
    # -------------------------------------------------------------------------

    async def list_messages(self, query: str) -> tuple[int, list[dict]]:
        """
        Single-shot message search.

        Returns Gmail's result size estimate and the ids listed on the first
        page (head of the result set, newest first).
        """
        data = await self._get(
            "/gmail/v1/users/me/messages",
            params={"q": query, "maxResults": self.settings.gmail_list_max_results},
            resource=f"messages ({query})",
        )
        if not isinstance(data, dict):
            raise MalformedResponseError(self.name, "messages", "expected an object")
        return int(data.get("resultSizeEstimate") or 0), data.get("messages") or []

    async def sample_message_dates(self, messages: list[dict]) -> list:
        """
        Fetch the Date header of up to ``gmail_sample_size`` messages.

        One entry per message whose metadata was retrieved (None when the
        header is missing or unreadable). Failed messages are skipped.
        """
        sample = messages[:self.settings.gmail_sample_size]
        pacing = pacing_for(self.settings.gmail_call_delay_seconds)
        dates = []

        for index, message in enumerate(sample):
            if index:
                await pacing.pause(index)
            message_id = message.get("id")
            try:
                data = await self._get(
                    f"/gmail/v1/users/me/messages/{message_id}",
                    params={"format": "metadata", "metadataHeaders": "Date"},
                    resource=f"message {message_id}",
                )
            except SUB_RESOURCE_ERRORS as e:
                logger.warning(f"Error fetching email details for {message_id}: {e}")
                continue
            dates.append(parse_mail_date(date_header(data)) if isinstance(data, dict) else None)

        return dates

    async def _folder_stats(self, folder: str, year: int) -> tuple[int, list[int], int]:
        total, messages = await self.list_messages(mail_query(folder, year))
        sample_dates = await self.sample_message_dates(messages)
        return total, estimate_monthly(sample_dates, total, year), len(sample_dates)

    async def get_mail_statistics(self, year: int) -> MailStatistics:
        """Sent and received volume, queried concurrently."""
        (sent, sent_months, sent_sample), (received, received_months, received_sample) = (
            await run_concurrently(
                self._folder_stats("sent", year),
                self._folder_stats("inbox", year),
            )
        )
        return MailStatistics(
            total_sent=sent,
            total_received=received,
            sent_by_month=sent_months,
            received_by_month=received_months,
            sent_sample_size=sent_sample,
            received_sample_size=received_sample,
            average_sent_per_day=average_per_day(sent, year),
            average_received_per_day=average_per_day(received, year),
        )

    # -------------------------------------------------------------------------
    # Calendar
    # -------------------------------------------------------------------------

    async def list_events(self, year: int) -> tuple[list[dict], Coverage]:
        """
        Every primary-calendar event of the year, recurring ones expanded.

        A later page failing or the page cap keeps the events received so
        far; the returned coverage then marks the counts as a lower bound.
        """
        params = {
            "timeMin": to_iso_z(year_start(year)),
            "timeMax": to_iso_z(year_end(year)),
            "maxResults": self.settings.calendar_page_size,
            "singleEvents": "true",
            "orderBy": "startTime",
        }

        async def fetch(page_token):
            page_params = dict(params)
            if page_token:
                page_params["pageToken"] = page_token
            data = await self._get(
                "/calendar/v3/calendars/primary/events",
                params=page_params,
                resource="calendar events",
            )
            if not isinstance(data, dict):
                raise MalformedResponseError(self.name, "calendar events", "expected an object")
            return Page(data.get("items") or [], data.get("nextPageToken"))

        paginator = Paginator(
            fetch,
            PaginationStyle.CURSOR,
            resource="google calendar events",
            max_pages=self.settings.calendar_max_pages,
        )
        events, complete = await self.collect_listing(paginator)

        coverage = Coverage(probed=1, available=1)
        if not complete:
            coverage.failed += 1
            coverage.failed_resources.append("calendar events")
        if paginator.truncated:
            logger.warning(
                f"Calendar listing stopped after {paginator.pages_fetched} pages"
            )
            coverage.truncated += 1
        return events, coverage.finalize()

    async def get_calendar_statistics(self, year: int) -> tuple[CalendarStatistics, Coverage]:
        events, coverage = await self.list_events(year)
        return summarize_calendar(events, year), coverage

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_year_statistics(self, year: int) -> GoogleYearStatistics:
        identity = await self.get_identity()
        mail, (calendar, coverage) = await run_concurrently(
            self.get_mail_statistics(year),
            self.get_calendar_statistics(year),
        )

        logger.info(
            f"Google {year}: ~{mail.total_sent} sent, ~{mail.total_received} received, "
            f"{calendar.total_events} events"
        )

        return GoogleYearStatistics(
            provider=self.name,
            year=year,
            identity=identity,
            total_count=calendar.total_events,
            monthly=calendar.events_by_month,
            average_per_week=calendar.average_per_week,
            coverage=coverage,
            mail=mail,
            calendar=calendar,
        )
