"""
Slack adapter.

Slack answers HTTP 200 for most failures and reports them as
``{"ok": false, "error": "..."}``; those are mapped onto the same errors as
HTTP failures here.

Slack API Limits (Tier 3 for conversations.*):
- ~50 requests per minute per method
- 429 responses carry Retry-After
"""

import logging
from typing import Optional

from yearreview.features.base import ProviderAdapter
from yearreview.features.schemas import Coverage, Identity
from yearreview.shared.constants import DEFAULT_TOP_N, Provider
from yearreview.shared.dates import year_start
from yearreview.shared.errors import SUB_RESOURCE_ERRORS, MalformedResponseError, ProviderFetchError
from yearreview.shared.pagination import Page, PaginationStyle, Paginator, pacing_for
from yearreview.shared.stats import average_per_day
from .schemas import SlackYearStatistics
from .stats import MessageSummary, is_user_message

logger = logging.getLogger(__name__)


# Slack error codes meaning the token itself is no longer usable
AUTH_ERRORS = {
    "invalid_auth",
    "not_authed",
    "token_revoked",
    "token_expired",
    "account_inactive",
}


class SlackAdapter(ProviderAdapter):
    """
    Slack yearly statistics.

    Usage:
        adapter = SlackAdapter(store)
        stats = await adapter.get_year_statistics(2024)
    """

    provider = Provider.SLACK

    def base_url(self) -> str:
        return self.settings.slack_api_url

    # -------------------------------------------------------------------------
    # API Calls
    # -------------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        params: Optional[dict] = None,
        http_method: str = "GET",
        resource: Optional[str] = None,
    ) -> dict:
        """
        Call a Web API method and unwrap Slack's ``ok`` envelope.

        Raises:
            ProviderFetchError: ``ok`` is false (``detail`` holds Slack's error code)
            MalformedResponseError: payload is not an envelope
        """
        resource = resource or method
        data = await self.api.request(
            http_method,
            f"/{method}",
            token=await self.token(),
            params=params,
            resource=resource,
        )
        if not isinstance(data, dict) or "ok" not in data:
            raise MalformedResponseError(self.name, resource, "missing ok flag")
        if not data["ok"]:
            raise ProviderFetchError(
                self.name, resource, status=200, detail=data.get("error", "unknown_error")
            )
        return data

    async def get_identity(self) -> Identity:
        try:
            auth = await self._call("auth.test", http_method="POST")
        except ProviderFetchError as e:
            if e.status == 401 or e.detail in AUTH_ERRORS:
                raise self.credentials.reject(self.name, e.detail or "401") from e
            raise
        user_id = auth.get("user_id")
        if not user_id:
            raise MalformedResponseError(self.name, "auth.test", "missing user_id")

        name = auth.get("user")
        try:
            info = await self._call("users.info", params={"user": user_id})
            name = (info.get("user") or {}).get("real_name") or name
        except SUB_RESOURCE_ERRORS as e:
            logger.warning(f"Could not load Slack profile for {user_id}: {e}")

        return Identity(id=user_id, name=name, handle=auth.get("user"))

    async def list_channels(self) -> tuple[list[dict], bool]:
        """Public and private channels the user is a member of."""

        async def fetch(cursor):
            params = {"types": "public_channel,private_channel", "limit": self.settings.slack_page_size}
            if cursor:
                params["cursor"] = cursor
            data = await self._call("conversations.list", params=params)
            next_cursor = (data.get("response_metadata") or {}).get("next_cursor")
            return Page(data.get("channels") or [], next_cursor)

        return await self.collect_listing(Paginator(
            fetch,
            PaginationStyle.CURSOR,
            resource="slack channels",
            pacing=pacing_for(self.settings.slack_call_delay_seconds),
            record_filter=lambda channel: bool(channel.get("is_member")),
        ))

    def history_paginator(self, channel: dict, user_id: str, year: int) -> Paginator:
        """Messages by ``user_id`` in one channel during ``year``, capped per channel."""
        channel_id = channel.get("id")
        base_params = {
            "channel": channel_id,
            "oldest": int(year_start(year).timestamp()),
            "latest": int(year_start(year + 1).timestamp()),
            "limit": self.settings.slack_page_size,
        }

        async def fetch(cursor):
            params = dict(base_params)
            if cursor:
                params["cursor"] = cursor
            data = await self._call(
                "conversations.history",
                params=params,
                resource=f"history of #{channel.get('name', channel_id)}",
            )
            next_cursor = (data.get("response_metadata") or {}).get("next_cursor")
            return Page(data.get("messages") or [], next_cursor)

        return Paginator(
            fetch,
            PaginationStyle.CURSOR,
            resource=f"slack history {channel.get('name', channel_id)}",
            pacing=pacing_for(self.settings.slack_call_delay_seconds),
            max_records=self.settings.slack_max_messages_per_channel,
            record_filter=lambda message: is_user_message(message, user_id),
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_year_statistics(self, year: int) -> SlackYearStatistics:
        identity = await self.get_identity()
        channels, complete = await self.list_channels()

        limit = self.settings.slack_max_channels
        probed = channels[:limit]
        coverage = Coverage(probed=len(probed), available=len(channels), limit=limit)
        if not complete:
            coverage.failed += 1
            coverage.failed_resources.append("channel listing")
        summary = MessageSummary()
        pacing = pacing_for(self.settings.slack_call_delay_seconds)

        for index, channel in enumerate(probed):
            if index:
                await pacing.pause(index)
            label = f"#{channel.get('name', channel.get('id'))}"
            paginator = self.history_paginator(channel, identity.id, year)
            try:
                messages = await paginator.collect()
            except SUB_RESOURCE_ERRORS as e:
                self.skip_sub_resource(coverage, label, e)
                continue
            if paginator.truncated:
                coverage.truncated += 1
            summary.add(channel, messages, year)

        logger.info(
            f"Slack {year}: {summary.total} messages in "
            f"{len(summary.channels)}/{len(probed)} channels"
        )

        return SlackYearStatistics(
            provider=self.name,
            year=year,
            identity=identity,
            total_count=summary.total,
            monthly=summary.by_month,
            top_entities=summary.top_channels(DEFAULT_TOP_N),
            average_per_day=average_per_day(summary.total, year),
            coverage=coverage.finalize(),
            channels_participated=len(summary.channels),
            total_channels=len(channels),
        )
