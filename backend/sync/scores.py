"""
Score reconciliation: fill in final scores for past fixtures.

Opponent matching is a bidirectional, case-sensitive substring test against
the feed's team names. The first feed match in feed order wins, so two
fixtures against similarly named opponents in one window can be misassigned.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from shared.models.domain import Event, EventUpdate, FeedMatch, Fixture, SyncOutcome, TrackedTeam
from shared.models.enums import OutcomeKind, Role, SkipReason, SyncPhase
from shared.utils.logging import get_logger

from ingest.providers.base import BaseFeedProvider
from sync.errors import IncompleteFeedRecord, ItemSkipped, NoMatchFound
from sync.outcomes import record
from sync.store import EventStore

logger = get_logger(__name__)

PHASE = SyncPhase.SCORES
DEFAULT_FINISHED_WINDOW = 20


def find_opponent_match(opponent: str, matches: Sequence[FeedMatch]) -> Optional[FeedMatch]:
    """First match where either side's name contains, or is contained in, the opponent."""
    for match in matches:
        for name in (match.home_team.match_name, match.away_team.match_name):
            if name and (opponent in name or name in opponent):
                return match
    return None


def orient_score(role: Role, home: int, away: int) -> tuple[int, int]:
    """Feed (home, away) score as stored on the event: the tracked team's goals first."""
    return (home, away) if role == Role.HOME else (away, home)


def resolve_final_score(fixture: Fixture, matches: Sequence[FeedMatch]) -> tuple[FeedMatch, int, int]:
    """
    Pick the feed match for a fixture and return it with the oriented score.

    Raises:
        NoMatchFound: no feed match names the opponent.
        IncompleteFeedRecord: the match has no full-time score yet.
    """
    match = find_opponent_match(fixture.opponent, matches)
    if match is None:
        raise NoMatchFound(f"no finished match against {fixture.opponent}")
    final = match.final_score
    if final is None:
        raise IncompleteFeedRecord(f"match {match.id} has no final score", external_id=match.id)
    home, away = orient_score(fixture.role, *final)
    return match, home, away


async def reconcile_scores(
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam,
    window: int = DEFAULT_FINISHED_WINDOW,
    now: Optional[datetime] = None,
    outcomes: Optional[list[SyncOutcome]] = None,
) -> list[SyncOutcome]:
    """
    Score past, unscored fixtures from the feed's most recent finished matches.

    The feed is only called when at least one candidate exists. A feed failure
    raises FeedUnavailableError; an event without a qualifying match is skipped.
    """
    now = now or datetime.now(timezone.utc)
    outcomes = outcomes if outcomes is not None else []

    candidates: list[tuple[Event, Fixture]] = []
    for event in await store.find_unscored_before(now):
        fixture = event.fixture or Fixture.parse_title(team.name, event.title)
        if fixture is not None:
            candidates.append((event, fixture))
        elif team.name in event.title:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, event.title, event=event,
                   reason=SkipReason.UNPARSED_TITLE)

    if not candidates:
        logger.info("score_sync_no_candidates")
        return outcomes

    matches = await feed.get_finished_matches(team.id, window)
    logger.info("score_sync_started", candidates=len(candidates), feed_matches=len(matches))

    for event, fixture in candidates:
        try:
            match, home, away = resolve_final_score(fixture, matches)
            holder = await store.get_by_external_id(match.id)
            if holder is not None and holder.id != event.id:
                raise NoMatchFound(
                    f"match already linked to {holder.title}",
                    reason=SkipReason.EXTERNAL_ID_CLAIMED,
                    external_id=match.id,
                )
        except ItemSkipped as exc:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, event.title, event=event,
                   external_id=exc.external_id, reason=exc.reason, detail=str(exc))
            continue

        await store.update_event(
            event.id,
            EventUpdate(
                home_score=home,
                away_score=away,
                venue=fixture.role.venue,
                external_id=match.id,
            ),
        )
        record(outcomes, PHASE, OutcomeKind.UPDATED, event.title, event=event,
               external_id=match.id, detail=f"{home}-{away}")

    return outcomes
