"""
Abstract base class for results feeds.
Defines the contract that the sync engine consumes.
"""
from __future__ import annotations

import abc

from shared.models.domain import FeedMatch


class BaseFeedProvider(abc.ABC):
    """
    A source of match schedules, final scores and lineups for one team.

    Implementations raise FeedUnavailableError for network failures and
    non-success responses, and ConfigurationError from ensure_configured()
    when a credential is missing.
    """

    name: str = "feed"

    async def start(self) -> None:
        """Acquire network resources. No-op by default."""

    async def close(self) -> None:
        """Release network resources. No-op by default."""

    async def __aenter__(self) -> "BaseFeedProvider":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the feed cannot be used. No-op by default."""

    @abc.abstractmethod
    async def get_finished_matches(self, team_id: int, limit: int) -> list[FeedMatch]:
        """Most recent finished matches for a team, in feed order."""
        ...

    @abc.abstractmethod
    async def get_match_by_id(self, match_id: int) -> FeedMatch:
        """Full match detail, including lineups once published."""
        ...

    @abc.abstractmethod
    async def get_upcoming_matches(self, team_id: int, limit: int | None = None) -> list[FeedMatch]:
        """Scheduled matches for a team, in feed order."""
        ...
