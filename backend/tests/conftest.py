"""Shared fixtures: in-memory event store, scripted feed and feed payload builders."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

import pytest

from shared.models.domain import Event, EventUpdate, FeedMatch, Fixture, Lineup, NewEvent, TrackedTeam

from ingest.providers.base import BaseFeedProvider
from sync.errors import ConfigurationError
from sync.store import EventStore

TEAM_ID = 66
TEAM = TrackedTeam(id=TEAM_ID, name="Man Utd")


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ── Feed payloads ───────────────────────────────────────────────────────

def team_payload(
    team_id: int,
    name: str,
    short_name: Optional[str] = None,
    lineup: Optional[list[Any]] = None,
    formation: Optional[str] = None,
    coach: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return {
        "id": team_id,
        "name": name,
        "shortName": short_name,
        "formation": formation,
        "coach": coach,
        "lineup": lineup,
    }


def feed_match(
    match_id: int,
    opponent: str,
    kickoff: datetime,
    tracked_home: bool = True,
    score: Optional[tuple[int, int]] = None,
    opponent_short: Optional[str] = None,
    opponent_id: int = 1000,
    lineup: Optional[list[Any]] = None,
    formation: Optional[str] = None,
    coach: Optional[dict[str, Any]] = None,
    status: str = "FINISHED",
) -> FeedMatch:
    """FeedMatch as football-data.org would return it; ``score`` is (home, away) as in the feed."""
    ours = team_payload(TEAM_ID, "Manchester United FC", "Man United", lineup, formation, coach)
    theirs = team_payload(opponent_id, opponent, opponent_short)
    home, away = (ours, theirs) if tracked_home else (theirs, ours)
    return FeedMatch.model_validate({
        "id": match_id,
        "utcDate": kickoff.isoformat().replace("+00:00", "Z"),
        "status": status,
        "competition": {"id": 2021, "name": "Premier League"},
        "homeTeam": home,
        "awayTeam": away,
        "score": {"fullTime": {"home": score[0], "away": score[1]} if score else {"home": None, "away": None}},
    })


def player(idx: int, name: str, position: str, shirt: Optional[int] = None) -> dict[str, Any]:
    return {"id": idx, "name": name, "position": position, "shirtNumber": shirt or idx}


FULL_XI_4231 = [
    player(1, "André Onana", "Goalkeeper", 24),
    player(2, "Diogo Dalot", "Right-Back", 20),
    player(3, "Matthijs de Ligt", "Centre-Back", 4),
    player(4, "Lisandro Martínez", "Centre-Back", 6),
    player(5, "Noussair Mazraoui", "Left-Back", 3),
    player(6, "Casemiro", "Defensive Midfield", 18),
    player(7, "Kobbie Mainoo", "Defensive Midfield", 37),
    player(8, "Amad Diallo", "Right Wing", 16),
    player(9, "Bruno Fernandes", "Attacking Midfield", 8),
    player(10, "Alejandro Garnacho", "Left Wing", 17),
    player(11, "Rasmus Højlund", "Centre-Forward", 11),
]


# ── Fakes ───────────────────────────────────────────────────────────────

class InMemoryEventStore(EventStore):
    """EventStore over dicts, with a write log for idempotency checks."""

    def __init__(self) -> None:
        self.events: dict[uuid.UUID, Event] = {}
        self.lineups: dict[uuid.UUID, Lineup] = {}
        self._seq: dict[uuid.UUID, int] = {}
        self.writes: list[tuple[str, uuid.UUID]] = []

    def _with_lineup(self, event: Event) -> Event:
        return event.model_copy(update={"lineup": self.lineups.get(event.id)})

    def _ordered(self) -> list[Event]:
        return sorted(self.events.values(), key=lambda e: (e.date, self._seq[e.id]))

    async def find_unscored_before(self, instant: datetime) -> list[Event]:
        return [self._with_lineup(e) for e in self._ordered() if e.home_score is None and e.date < instant]

    async def find_needing_lineup(self, include_existing: bool = False) -> list[Event]:
        return [
            self._with_lineup(e)
            for e in self._ordered()
            if e.has_score and e.external_id is not None and (include_existing or e.id not in self.lineups)
        ]

    async def get_by_external_id(self, external_id: int) -> Optional[Event]:
        for event in self.events.values():
            if event.external_id == external_id:
                return self._with_lineup(event)
        return None

    async def find_first_by_title_in_window(
        self, text: str, start: datetime, end: datetime
    ) -> Optional[Event]:
        for event in self._ordered():
            if text in event.title and start <= event.date <= end:
                return self._with_lineup(event)
        return None

    async def create_event(self, new: NewEvent) -> Event:
        if new.external_id is not None and await self.get_by_external_id(new.external_id):
            raise ValueError(f"external_id {new.external_id} already used")
        event = Event(id=uuid.uuid4(), **new.model_dump())
        self.events[event.id] = event
        self._seq[event.id] = len(self._seq)
        self.writes.append(("create", event.id))
        return event

    async def update_event(self, event_id: uuid.UUID, update: EventUpdate) -> Event:
        if event_id not in self.events:
            raise LookupError(f"event {event_id} not found")
        event = self.events[event_id].model_copy(update=update.changes())
        self.events[event_id] = event
        self.writes.append(("update", event_id))
        return self._with_lineup(event)

    async def upsert_lineup(self, lineup: Lineup) -> Lineup:
        self.lineups[lineup.event_id] = lineup
        self.writes.append(("upsert_lineup", lineup.event_id))
        return lineup

    async def list_events(self) -> list[Event]:
        return [self._with_lineup(e) for e in self._ordered()]

    async def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        event = self.events.get(event_id)
        return self._with_lineup(event) if event else None

    async def get_lineup(self, event_id: uuid.UUID) -> Optional[Lineup]:
        return self.lineups.get(event_id)

    async def add(self, title: str, date: datetime, **fields: Any) -> Event:
        """Test helper: insert an event the way a manual entry or seed would."""
        fields.setdefault("fixture", Fixture.parse_title(TEAM.name, title))
        fields.setdefault("start_time", f"{date:%H:%M}")
        fields.setdefault("end_time", f"{date:%H:%M}")
        return await self.create_event(NewEvent(title=title, date=date, **fields))


MatchOrError = Union[FeedMatch, Exception]


class FakeFeed(BaseFeedProvider):
    """Scripted feed; every call is recorded in ``calls``."""

    name = "fake"

    def __init__(
        self,
        finished: Optional[list[FeedMatch]] = None,
        upcoming: Optional[list[FeedMatch]] = None,
        details: Optional[dict[int, MatchOrError]] = None,
        configured: bool = True,
    ) -> None:
        self.finished = finished or []
        self.upcoming = upcoming or []
        self.details = details or {}
        self.configured = configured
        self.finished_error: Optional[Exception] = None
        self.upcoming_error: Optional[Exception] = None
        self.calls: list[tuple[str, Any]] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("feed API key is not configured")

    async def get_finished_matches(self, team_id: int, limit: int) -> list[FeedMatch]:
        self.calls.append(("finished", limit))
        if self.finished_error:
            raise self.finished_error
        return list(self.finished[:limit])

    async def get_match_by_id(self, match_id: int) -> FeedMatch:
        self.calls.append(("match", match_id))
        result = self.details[match_id]
        if isinstance(result, Exception):
            raise result
        return result

    async def get_upcoming_matches(self, team_id: int, limit: int | None = None) -> list[FeedMatch]:
        self.calls.append(("upcoming", limit))
        if self.upcoming_error:
            raise self.upcoming_error
        return list(self.upcoming)


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()
