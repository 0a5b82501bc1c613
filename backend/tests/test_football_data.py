"""
football-data.org connector tests over httpx.MockTransport (no network).

Run: pytest backend/tests/test_football_data.py -v
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ingest.providers.football_data import FootballDataFeed
from shared.utils.http_client import MAX_RETRY_AFTER_S, retry_after_seconds
from sync.errors import ConfigurationError, FeedUnavailableError


def _match_json(match_id: int, **overrides: Any) -> dict[str, Any]:
    data = {
        "id": match_id,
        "utcDate": "2026-02-01T14:00:00Z",
        "status": "FINISHED",
        "competition": {"id": 2021, "name": "Premier League"},
        "homeTeam": {"id": 66, "name": "Manchester United FC", "shortName": "Man United"},
        "awayTeam": {"id": 63, "name": "Fulham FC", "shortName": "Fulham"},
        "score": {"fullTime": {"home": 3, "away": 2}},
    }
    data.update(overrides)
    return data


def _feed(handler: Callable[[httpx.Request], httpx.Response], api_key: str = "secret") -> FootballDataFeed:
    return FootballDataFeed(api_key=api_key, transport=httpx.MockTransport(handler), max_attempts=2)


@pytest.fixture(autouse=True)
def no_backoff():
    with patch("shared.utils.http_client.asyncio.sleep", AsyncMock()) as sleep:
        yield sleep


@pytest.mark.asyncio
async def test_finished_matches_request_and_parse() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"matches": [_match_json(1), _match_json(2)]})

    async with _feed(handler) as feed:
        matches = await feed.get_finished_matches(66, 20)

    assert [m.id for m in matches] == [1, 2]
    assert matches[0].final_score == (3, 2)
    request = seen[0]
    assert request.url.path == "/v4/teams/66/matches"
    assert request.url.params["status"] == "FINISHED"
    assert request.url.params["limit"] == "20"
    assert request.headers["X-Auth-Token"] == "secret"


@pytest.mark.asyncio
async def test_upcoming_matches_without_limit() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"matches": [_match_json(9, status="SCHEDULED", score={"fullTime": None})]})

    async with _feed(handler) as feed:
        matches = await feed.get_upcoming_matches(66)

    assert seen[0].url.params["status"] == "SCHEDULED"
    assert "limit" not in seen[0].url.params
    assert matches[0].final_score is None


@pytest.mark.asyncio
async def test_unparseable_match_is_dropped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"matches": [{"id": "x"}, _match_json(2)]})

    async with _feed(handler) as feed:
        matches = await feed.get_finished_matches(66, 20)

    assert [m.id for m in matches] == [2]


@pytest.mark.asyncio
async def test_match_detail_keeps_lineup() -> None:
    home = {
        "id": 66,
        "name": "Manchester United FC",
        "formation": "4-2-3-1",
        "coach": {"id": 1, "name": "Michael Carrick", "nationality": "England"},
        "lineup": [{"id": 1, "name": "André Onana", "position": "Goalkeeper", "shirtNumber": 24}],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v4/matches/538021"
        assert request.headers["X-Unfold-Lineups"] == "true"
        return httpx.Response(200, json=_match_json(538021, homeTeam=home))

    async with _feed(handler) as feed:
        match = await feed.get_match_by_id(538021)

    side = match.side_of(66)
    assert side is not None
    assert side.formation == "4-2-3-1"
    assert side.lineup[0]["name"] == "André Onana"
    assert match.away_team.lineup == []


@pytest.mark.asyncio
async def test_server_error_is_retried(no_backoff: AsyncMock) -> None:
    responses = iter([httpx.Response(503), httpx.Response(200, json={"matches": []})])

    async with _feed(lambda request: next(responses)) as feed:
        assert await feed.get_finished_matches(66, 20) == []
    no_backoff.assert_awaited()


@pytest.mark.asyncio
async def test_client_error_is_not_retried() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(403, json={"message": "forbidden"})

    async with _feed(handler) as feed:
        with pytest.raises(FeedUnavailableError) as exc_info:
            await feed.get_finished_matches(66, 20)

    assert exc_info.value.status_code == 403
    assert calls == 1


@pytest.mark.asyncio
async def test_persistent_server_error_becomes_feed_unavailable() -> None:
    async with _feed(lambda request: httpx.Response(500)) as feed:
        with pytest.raises(FeedUnavailableError) as exc_info:
            await feed.get_match_by_id(1)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_network_failure_becomes_feed_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _feed(handler) as feed:
        with pytest.raises(FeedUnavailableError):
            await feed.get_upcoming_matches(66)


@pytest.mark.asyncio
async def test_malformed_json_becomes_feed_unavailable() -> None:
    async with _feed(lambda request: httpx.Response(200, content=b"<html>")) as feed:
        with pytest.raises(FeedUnavailableError):
            await feed.get_finished_matches(66, 20)


def test_missing_api_key_is_a_configuration_error() -> None:
    feed = _feed(lambda request: httpx.Response(200), api_key="")
    with pytest.raises(ConfigurationError):
        feed.ensure_configured()


@pytest.mark.asyncio
async def test_rate_limit_waits_for_retry_after(no_backoff: AsyncMock) -> None:
    responses = iter([
        httpx.Response(429, headers={"Retry-After": "3"}),
        httpx.Response(200, json={"matches": [_match_json(5)]}),
    ])

    async with _feed(lambda request: next(responses)) as feed:
        matches = await feed.get_finished_matches(66, 20)

    assert [m.id for m in matches] == [5]
    no_backoff.assert_awaited_once_with(3.0)


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, 2.0),
        ("0", 0.0),
        ("4.5", 4.5),
        ("600", MAX_RETRY_AFTER_S),
        ("soon", 2.0),
        ("Sun, 01 Feb 2026 14:00:05 GMT", 5.0),
    ],
)
def test_retry_after_header_parsing(header: str | None, expected: float) -> None:
    now = datetime(2026, 2, 1, 14, 0, tzinfo=timezone.utc)
    assert retry_after_seconds(header, now=now) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("max_attempts", [1, 3])
async def test_max_attempts_counts_every_try(max_attempts: int) -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503)

    feed = FootballDataFeed(api_key="secret", transport=httpx.MockTransport(handler), max_attempts=max_attempts)
    async with feed:
        with pytest.raises(FeedUnavailableError):
            await feed.get_finished_matches(66, 20)
    assert calls == max_attempts
