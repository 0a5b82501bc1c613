"""
Lineup reconciliation: fetch and lay out starting lineups for finished fixtures.

Each event is handled on its own. A feed failure or a malformed payload for
one match becomes a skipped outcome and the phase moves on to the next event;
store failures still propagate.
"""
from __future__ import annotations

import uuid
from typing import Optional

from shared.models.domain import Coach, FeedTeam, Lineup, SyncOutcome, TrackedTeam
from shared.models.enums import OutcomeKind, SkipReason, SyncPhase
from shared.utils.logging import get_logger

from ingest.providers.base import BaseFeedProvider
from sync.errors import FeedUnavailableError, IncompleteFeedRecord, ItemSkipped, NoMatchFound
from sync.formation import transform_lineup
from sync.outcomes import record
from sync.store import EventStore

logger = get_logger(__name__)

PHASE = SyncPhase.LINEUPS


def _coach_of(side: FeedTeam) -> Optional[Coach]:
    if side.coach is None or not side.coach.name:
        return None
    return Coach(name=side.coach.name, nationality=side.coach.nationality)


async def fetch_team_lineup(
    feed: BaseFeedProvider,
    team: TrackedTeam,
    event_id: uuid.UUID,
    external_id: int,
) -> Lineup:
    """
    Build the tracked team's lineup for one feed match.

    Raises:
        FeedUnavailableError: the match detail could not be fetched.
        NoMatchFound: the tracked team did not play in the match.
        IncompleteFeedRecord: the feed has not published the lineup yet.
        TransformFailure: the lineup payload is malformed.
    """
    match = await feed.get_match_by_id(external_id)
    side = match.side_of(team.id)
    if side is None:
        raise NoMatchFound(
            f"team {team.id} is not in match {external_id}",
            reason=SkipReason.TEAM_NOT_IN_MATCH,
            external_id=external_id,
        )
    if not side.lineup:
        raise IncompleteFeedRecord(
            f"lineup for match {external_id} not published",
            reason=SkipReason.LINEUP_UNAVAILABLE,
            external_id=external_id,
        )
    # Missing formation falls through to the generic layout.
    formation = side.formation or ""
    return Lineup(
        event_id=event_id,
        formation=formation,
        players=transform_lineup(side.lineup, formation),
        coach=_coach_of(side),
    )


async def refresh_event_lineup(
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam,
    event_id: uuid.UUID,
    external_id: int,
) -> Lineup:
    """Fetch one match's lineup and replace whatever the event had stored."""
    lineup = await fetch_team_lineup(feed, team, event_id, external_id)
    saved = await store.upsert_lineup(lineup)
    logger.info(
        "lineup_saved",
        event_id=str(event_id),
        external_id=external_id,
        formation=saved.formation,
        players=len(saved.players),
    )
    return saved


async def reconcile_lineups(
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam,
    refresh_existing: bool = False,
    outcomes: Optional[list[SyncOutcome]] = None,
) -> list[SyncOutcome]:
    """
    Attach lineups to scored, feed-linked events.

    With refresh_existing, events that already have a lineup are fetched again
    and their lineup is replaced wholesale.
    """
    outcomes = outcomes if outcomes is not None else []
    events = await store.find_needing_lineup(include_existing=refresh_existing)
    if not events:
        logger.info("lineup_sync_no_candidates")
        return outcomes

    logger.info("lineup_sync_started", candidates=len(events), refresh_existing=refresh_existing)
    for event in events:
        if event.external_id is None:
            continue
        try:
            lineup = await refresh_event_lineup(store, feed, team, event.id, event.external_id)
        except FeedUnavailableError as exc:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, event.title, event=event,
                   reason=SkipReason.FEED_ERROR, detail=str(exc))
            continue
        except ItemSkipped as exc:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, event.title, event=event,
                   external_id=exc.external_id, reason=exc.reason, detail=str(exc))
            continue

        record(outcomes, PHASE, OutcomeKind.UPDATED, event.title, event=event,
               detail=lineup.formation or "no formation")

    return outcomes
