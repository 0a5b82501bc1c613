"""
Football-Data.org (football-data.org) feed connector.
Team fixtures (scheduled / finished) and match detail with lineups.
Uses v4 API with X-Auth-Token. Free tier: 10 requests/min.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.models.domain import FeedMatch
from shared.models.enums import MatchStatus
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger

from ingest.providers.base import BaseFeedProvider
from sync.errors import ConfigurationError, FeedUnavailableError

logger = get_logger(__name__)

FOOTBALL_DATA_BASE = "https://api.football-data.org/v4"


class FootballDataFeed(BaseFeedProvider):
    """Football-Data.org v4 API (soccer only)."""

    name = "football_data"

    def __init__(
        self,
        api_key: str,
        base_url: str = FOOTBALL_DATA_BASE,
        timeout_s: float | None = None,
        max_attempts: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        headers: dict[str, str] = {}
        if api_key:
            headers["X-Auth-Token"] = api_key
        # Request lineups in match response
        headers["X-Unfold-Lineups"] = "true"
        self._http = FeedHTTPClient(
            provider_name=self.name,
            base_url=base_url,
            headers=headers,
            timeout_s=timeout_s,
            max_attempts=max_attempts,
            transport=transport,
        )
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FootballDataFeed":
        settings = settings or get_settings()
        return cls(
            api_key=settings.football_data_api_key,
            base_url=settings.football_data_base_url,
            timeout_s=settings.feed_request_timeout_s,
            max_attempts=settings.feed_max_attempts,
        )

    async def start(self) -> None:
        if not self._started:
            await self._http.start()
            self._started = True

    async def close(self) -> None:
        if self._started:
            await self._http.close()
            self._started = False

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError("football-data.org API key is not configured (MD_FOOTBALL_DATA_API_KEY)")

    async def _get_json(self, path: str, params: dict[str, Any] | None, endpoint: str) -> Any:
        """GET and decode JSON, translating every failure into FeedUnavailableError."""
        await self.start()
        try:
            resp = await self._http.get(path, params=params, endpoint=endpoint)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise FeedUnavailableError(
                f"football-data.org {path} returned {status}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise FeedUnavailableError(f"football-data.org {path} unreachable: {exc}") from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise FeedUnavailableError(f"football-data.org {path} returned malformed JSON") from exc

    def _parse_matches(self, data: Any, path: str) -> list[FeedMatch]:
        if not isinstance(data, dict):
            raise FeedUnavailableError(f"football-data.org {path} returned an unexpected payload")
        matches: list[FeedMatch] = []
        for raw in data.get("matches") or []:
            try:
                matches.append(FeedMatch.model_validate(raw))
            except ValidationError as exc:
                logger.warning(
                    "football_data_match_unparseable",
                    path=path,
                    match_id=raw.get("id") if isinstance(raw, dict) else None,
                    error=str(exc),
                )
        return matches

    async def _team_matches(
        self, team_id: int, status: MatchStatus, limit: Optional[int]
    ) -> list[FeedMatch]:
        path = f"/teams/{team_id}/matches"
        params: dict[str, Any] = {"status": status.value}
        if limit:
            params["limit"] = limit
        data = await self._get_json(path, params, endpoint=f"team_matches_{status.value.lower()}")
        matches = self._parse_matches(data, path)
        logger.info(
            "football_data_team_matches",
            team_id=team_id,
            status=status.value,
            count=len(matches),
        )
        return matches

    async def get_finished_matches(self, team_id: int, limit: int) -> list[FeedMatch]:
        return await self._team_matches(team_id, MatchStatus.FINISHED, limit)

    async def get_upcoming_matches(self, team_id: int, limit: int | None = None) -> list[FeedMatch]:
        return await self._team_matches(team_id, MatchStatus.SCHEDULED, limit)

    async def get_match_by_id(self, match_id: int) -> FeedMatch:
        path = f"/matches/{match_id}"
        data = await self._get_json(path, None, endpoint="match")
        try:
            return FeedMatch.model_validate(data)
        except ValidationError as exc:
            raise FeedUnavailableError(f"football-data.org {path} returned an unexpected payload") from exc
