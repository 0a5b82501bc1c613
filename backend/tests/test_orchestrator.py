"""
Orchestrator tests: phase order, the ordered run log and fatal-error handling.

Run: pytest backend/tests/test_orchestrator.py -v
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from shared.config import Settings
from sync.errors import FeedUnavailableError
from sync.orchestrator import run_sync

from conftest import FULL_XI_4231, TEAM, FakeFeed, InMemoryEventStore, feed_match, utc

NOW = utc(2026, 2, 20, 12, 0)


@pytest.fixture
def settings() -> Settings:
    return Settings(football_data_api_key="test-key", finished_match_window=20, upcoming_match_limit=30)


@pytest.mark.asyncio
async def test_full_run_logs_every_phase_in_order(store: InMemoryEventStore, settings: Settings) -> None:
    fulham = await store.add("Man Utd vs Fulham", utc(2026, 2, 1, 14))
    feed = FakeFeed(
        finished=[feed_match(538021, "Fulham FC", utc(2026, 2, 1, 14), score=(3, 2), opponent_short="Fulham")],
        details={538021: feed_match(538021, "Fulham FC", utc(2026, 2, 1, 14), score=(3, 2),
                                    lineup=FULL_XI_4231, formation="4-2-3-1")},
        upcoming=[feed_match(600, "Everton FC", utc(2026, 2, 23, 20), tracked_home=False, status="SCHEDULED")],
    )

    report = await run_sync(store, feed, TEAM, settings=settings, now=NOW)

    assert report.ok is True
    assert report.error is None
    assert report.log[0].startswith("Sync started at ")
    assert report.log[1:] == [
        "Syncing scores...",
        "  Updated: Man Utd vs Fulham -> 3-2",
        "Syncing lineups...",
        "  Updated: Man Utd vs Fulham -> 4-2-3-1",
        "Syncing upcoming matches...",
        "  Created: Man Utd @ Everton FC -> 2026-02-23 20:00",
        "Sync complete.",
    ]
    assert [c[0] for c in feed.calls] == ["finished", "match", "upcoming"]
    assert fulham.id in store.lineups


@pytest.mark.asyncio
async def test_empty_phases_say_so(store: InMemoryEventStore, settings: Settings) -> None:
    report = await run_sync(store, FakeFeed(), TEAM, settings=settings, now=NOW)

    assert report.ok is True
    assert report.log[1:] == [
        "Syncing scores...",
        "  No scores to update.",
        "Syncing lineups...",
        "  No lineups to update.",
        "Syncing upcoming matches...",
        "  No upcoming matches.",
        "Sync complete.",
    ]


@pytest.mark.asyncio
async def test_missing_credential_fails_before_any_phase(store: InMemoryEventStore, settings: Settings) -> None:
    feed = FakeFeed(configured=False)

    report = await run_sync(store, feed, TEAM, settings=settings, now=NOW)

    assert report.ok is False
    assert "not configured" in (report.error or "")
    assert len(report.log) == 1
    assert feed.calls == []


@pytest.mark.asyncio
async def test_fatal_error_keeps_partial_log_and_stops(store: InMemoryEventStore, settings: Settings) -> None:
    await store.add("Man Utd vs Fulham", utc(2026, 2, 1, 14))
    feed = FakeFeed(
        finished=[feed_match(1, "Fulham FC", utc(2026, 2, 1, 14), score=(2, 0), opponent_short="Fulham")],
        details={1: feed_match(1, "Fulham FC", utc(2026, 2, 1, 14), score=(2, 0), lineup=[])},
    )
    feed.upcoming_error = FeedUnavailableError("football-data.org /teams/66/matches returned 503", status_code=503)

    report = await run_sync(store, feed, TEAM, settings=settings, now=NOW)

    assert report.ok is False
    assert "503" in (report.error or "")
    assert "  Updated: Man Utd vs Fulham -> 2-0" in report.log
    assert report.log[-1] == "Syncing upcoming matches..."
    assert "Sync complete." not in report.log
    assert [o.phase.value for o in report.outcomes] == ["scores", "lineups"]


@pytest.mark.asyncio
async def test_score_feed_failure_skips_later_phases(store: InMemoryEventStore, settings: Settings) -> None:
    await store.add("Man Utd vs Fulham", utc(2026, 2, 1, 14))
    feed = FakeFeed()
    feed.finished_error = FeedUnavailableError("football-data.org unreachable")

    report = await run_sync(store, feed, TEAM, settings=settings, now=NOW)

    assert report.ok is False
    assert report.log[-1] == "Syncing scores..."
    assert [c[0] for c in feed.calls] == ["finished"]


@pytest.mark.asyncio
async def test_unexpected_store_error_is_reported(settings: Settings) -> None:
    store = InMemoryEventStore()
    with patch.object(store, "find_unscored_before", AsyncMock(side_effect=RuntimeError("database is down"))):
        report = await run_sync(store, FakeFeed(), TEAM, settings=settings, now=NOW)

    assert report.ok is False
    assert report.error == "RuntimeError: database is down"
    assert report.finished_at is not None
