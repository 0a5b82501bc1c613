"""
Fixture merging: bring feed-announced upcoming matches into the calendar.

Per feed match, in feed order:
  1. an event already linked to the feed id means nothing to do;
  2. an event whose title contains the opponent's base name within the
     dedup window around kickoff is the same fixture, entered by hand; it is
     linked to the feed id when it has none and otherwise left alone;
  3. anything else becomes a new event.
A feed match without an opponent name is skipped, since its dedup name
would match every title.

Running twice against unchanged feed data creates and mutates nothing.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from shared.models.domain import EventUpdate, FeedMatch, Fixture, NewEvent, SyncOutcome, TrackedTeam
from shared.models.enums import OutcomeKind, Role, SkipReason, SyncPhase
from shared.utils.logging import get_logger

from ingest.providers.base import BaseFeedProvider
from sync.errors import IncompleteFeedRecord
from sync.outcomes import record
from sync.store import EventStore

logger = get_logger(__name__)

PHASE = SyncPhase.FIXTURES
DEFAULT_DEDUP_WINDOW = timedelta(hours=24)
DEFAULT_MATCH_DURATION = timedelta(hours=2)
DEFAULT_COMPETITION = "Premier League"
DEFAULT_HOME_GROUND = "Old Trafford"


def opponent_base_name(name: str) -> str:
    """Club name without a trailing " FC" or a leading "AFC "."""
    if name.endswith(" FC"):
        name = name[: -len(" FC")]
    if name.startswith("AFC "):
        name = name[len("AFC "):]
    return name


def dedup_name_of(match: FeedMatch, team: TrackedTeam) -> str:
    """
    Opponent base name used for fuzzy dedup.

    Raises:
        IncompleteFeedRecord: the feed gives the opponent no name.
    """
    base = opponent_base_name(fixture_of(match, team).opponent).strip()
    if not base:
        raise IncompleteFeedRecord(
            f"feed match {match.id} has no opponent name",
            reason=SkipReason.NO_OPPONENT,
            external_id=match.id,
        )
    return base


def kickoff_of(match: FeedMatch) -> datetime:
    kickoff = match.utc_date
    if kickoff.tzinfo is None:
        return kickoff.replace(tzinfo=timezone.utc)
    return kickoff.astimezone(timezone.utc)


def clock(instant: datetime) -> str:
    return instant.strftime("%H:%M")


def fixture_of(match: FeedMatch, team: TrackedTeam) -> Fixture:
    """Role and full opponent name of a feed match, seen from the tracked team."""
    role = match.role_of(team.id)
    other = match.away_team if role == Role.HOME else match.home_team
    return Fixture(role=role, opponent=other.name)


def describe(role: Role, competition: str, home_ground: str) -> str:
    if role == Role.HOME:
        return f"{competition} at {home_ground}"
    return f"{competition} fixture"


def build_new_event(
    match: FeedMatch,
    team: TrackedTeam,
    match_duration: timedelta = DEFAULT_MATCH_DURATION,
    competition: str = DEFAULT_COMPETITION,
    home_ground: str = DEFAULT_HOME_GROUND,
) -> NewEvent:
    """Event fields for a feed match the calendar does not know yet."""
    fixture = fixture_of(match, team)
    role = fixture.role
    kickoff = kickoff_of(match)
    return NewEvent(
        title=fixture.render_title(team.name),
        fixture=fixture,
        date=kickoff,
        start_time=clock(kickoff),
        end_time=clock(kickoff + match_duration),
        description=describe(role, competition, home_ground),
        venue=role.venue,
        external_id=match.id,
    )


async def merge_upcoming(
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam,
    dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
    match_duration: timedelta = DEFAULT_MATCH_DURATION,
    competition: str = DEFAULT_COMPETITION,
    home_ground: str = DEFAULT_HOME_GROUND,
    limit: Optional[int] = None,
    outcomes: Optional[list[SyncOutcome]] = None,
) -> list[SyncOutcome]:
    """Merge the feed's scheduled matches for the tracked team into the store."""
    outcomes = outcomes if outcomes is not None else []
    matches = await feed.get_upcoming_matches(team.id, limit)
    logger.info("fixture_merge_started", feed_matches=len(matches))

    for match in matches:
        linked = await store.get_by_external_id(match.id)
        if linked is not None:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, linked.title, event=linked,
                   reason=SkipReason.ALREADY_LINKED)
            continue

        try:
            base = dedup_name_of(match, team)
        except IncompleteFeedRecord as exc:
            record(outcomes, PHASE, OutcomeKind.SKIPPED, f"feed match {match.id}",
                   external_id=match.id, reason=exc.reason, detail=str(exc))
            continue

        kickoff = kickoff_of(match)
        existing = await store.find_first_by_title_in_window(
            base, kickoff - dedup_window, kickoff + dedup_window
        )
        if existing is not None:
            if existing.external_id is None:
                await store.update_event(existing.id, EventUpdate(external_id=match.id))
                record(outcomes, PHASE, OutcomeKind.LINKED, existing.title, event=existing,
                       external_id=match.id, detail=f"feed match {match.id}")
            else:
                record(outcomes, PHASE, OutcomeKind.SKIPPED, existing.title, event=existing,
                       reason=SkipReason.DUPLICATE,
                       detail=f"feed match {match.id} matches an event linked to {existing.external_id}")
            continue

        new = build_new_event(match, team, match_duration, competition, home_ground)
        created = await store.create_event(new)
        record(outcomes, PHASE, OutcomeKind.CREATED, created.title, event=created,
               detail=f"{created.date:%Y-%m-%d} {created.start_time}")

    return outcomes
