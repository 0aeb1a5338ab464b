"""
Slack statistics schemas.
"""
from typing import List

from yearreview.features.schemas import NormalizedYearStatistics, TopEntry


class SlackYearStatistics(NormalizedYearStatistics):
    """
    Messages authored by the user are the headline count.

    Only the first ``coverage.limit`` member channels are read, and each
    channel stops at a fixed number of messages, so counts are lower bounds.
    """
    channels_participated: int = 0
    total_channels: int = 0

    @property
    def total_messages(self) -> int:
        return self.total_count

    @property
    def top_channels(self) -> List[TopEntry]:
        return self.top_entities
