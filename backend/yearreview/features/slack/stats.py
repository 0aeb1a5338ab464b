"""Message filtering and channel aggregation for Slack."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from yearreview.features.schemas import TopEntry
from yearreview.shared.dates import parse_epoch
from yearreview.shared.stats import bucket_by_month, empty_histogram, rank_top


def is_user_message(message: dict, user_id: str) -> bool:
    """Plain message written by ``user_id``.

    Anything with a subtype (joins, bot posts, channel topic changes) is a
    system message and does not count.
    """
    return (
        message.get("user") == user_id
        and not message.get("subtype")
        and message.get("type") == "message"
    )


@dataclass
class ChannelMessages:
    name: str
    messages: int
    is_private: bool = False

    def to_entry(self) -> TopEntry:
        return TopEntry(
            label=self.name,
            count=self.messages,
            attributes={"is_private": self.is_private},
        )


@dataclass
class MessageSummary:
    total: int = 0
    by_month: list[int] = field(default_factory=empty_histogram)
    channels: list[ChannelMessages] = field(default_factory=list)

    def add(self, channel: dict, messages: Sequence[dict], year: int) -> None:
        """Add one channel's authored messages."""
        if not messages:
            return
        self.total += len(messages)
        months = bucket_by_month((parse_epoch(m.get("ts")) for m in messages), year)
        for month, count in enumerate(months):
            self.by_month[month] += count
        self.channels.append(
            ChannelMessages(
                name=channel.get("name") or channel.get("id", ""),
                messages=len(messages),
                is_private=bool(channel.get("is_private", False)),
            )
        )

    def top_channels(self, limit: int) -> list[TopEntry]:
        ranked = rank_top(self.channels, lambda c: c.messages, limit)
        return [c.to_entry() for c in ranked]
