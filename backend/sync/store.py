"""
Event store: the persistence capability the sync engine calls.

EventStore is the contract; SqlEventStore implements it on the async
SQLAlchemy DatabaseManager. Lineup and coach payloads are (de)serialized to
JSON here and nowhere else.
"""
from __future__ import annotations

import abc
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select

from shared.models.domain import (
    Coach,
    Event,
    EventUpdate,
    Fixture,
    Lineup,
    NewEvent,
    PlayerPosition,
)
from shared.models.enums import Role, Venue
from shared.models.orm import EventORM, LineupORM
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class EventStore(abc.ABC):
    """Predicate finds plus single-record writes over events and lineups."""

    @abc.abstractmethod
    async def find_unscored_before(self, instant: datetime) -> list[Event]:
        """Events with no score whose date is before ``instant``, oldest first."""

    @abc.abstractmethod
    async def find_needing_lineup(self, include_existing: bool = False) -> list[Event]:
        """Scored events linked to the feed; only those without a lineup unless include_existing."""

    @abc.abstractmethod
    async def get_by_external_id(self, external_id: int) -> Optional[Event]:
        ...

    @abc.abstractmethod
    async def find_first_by_title_in_window(
        self, text: str, start: datetime, end: datetime
    ) -> Optional[Event]:
        """First event (by date) whose title contains ``text`` and date lies in [start, end]."""

    @abc.abstractmethod
    async def create_event(self, new: NewEvent) -> Event:
        ...

    @abc.abstractmethod
    async def update_event(self, event_id: uuid.UUID, update: EventUpdate) -> Event:
        ...

    @abc.abstractmethod
    async def upsert_lineup(self, lineup: Lineup) -> Lineup:
        """
        Create the event's lineup, or replace it entirely.

        Formation, the full player list and the coach are always overwritten;
        nothing from a previous version survives.
        """

    @abc.abstractmethod
    async def list_events(self) -> list[Event]:
        ...

    @abc.abstractmethod
    async def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        ...

    @abc.abstractmethod
    async def get_lineup(self, event_id: uuid.UUID) -> Optional[Lineup]:
        ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _lineup_to_domain(row: LineupORM) -> Lineup:
    return Lineup(
        event_id=row.event_id,
        formation=row.formation,
        players=[PlayerPosition.model_validate(p) for p in row.players or []],
        coach=Coach.model_validate(row.coach) if row.coach else None,
        last_updated=_as_utc(row.last_updated),
    )


def _event_to_domain(row: EventORM, with_lineup: bool = True) -> Event:
    fixture = None
    if row.role and row.opponent:
        fixture = Fixture(role=Role(row.role), opponent=row.opponent)
    return Event(
        id=row.id,
        title=row.title,
        fixture=fixture,
        date=_as_utc(row.date),
        start_time=row.start_time,
        end_time=row.end_time,
        description=row.description,
        venue=Venue(row.venue) if row.venue else None,
        home_score=row.home_score,
        away_score=row.away_score,
        external_id=row.external_id,
        lineup=_lineup_to_domain(row.lineup) if with_lineup and row.lineup else None,
    )


class SqlEventStore(EventStore):
    """EventStore on SQLAlchemy; every write runs in its own transaction."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def find_unscored_before(self, instant: datetime) -> list[Event]:
        stmt = (
            select(EventORM)
            .where(EventORM.home_score.is_(None), EventORM.date < _as_utc(instant))
            .order_by(EventORM.date)
        )
        async with self._db.read_session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_event_to_domain(r) for r in rows]

    async def find_needing_lineup(self, include_existing: bool = False) -> list[Event]:
        stmt = (
            select(EventORM)
            .where(EventORM.home_score.is_not(None), EventORM.external_id.is_not(None))
            .order_by(EventORM.date)
        )
        if not include_existing:
            stmt = stmt.where(~EventORM.lineup.has())
        async with self._db.read_session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_event_to_domain(r) for r in rows]

    async def get_by_external_id(self, external_id: int) -> Optional[Event]:
        stmt = select(EventORM).where(EventORM.external_id == external_id)
        async with self._db.read_session() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _event_to_domain(row) if row else None

    async def find_first_by_title_in_window(
        self, text: str, start: datetime, end: datetime
    ) -> Optional[Event]:
        stmt = (
            select(EventORM)
            .where(
                EventORM.title.contains(text, autoescape=True),
                EventORM.date >= _as_utc(start),
                EventORM.date <= _as_utc(end),
            )
            .order_by(EventORM.date, EventORM.created_at)
            .limit(1)
        )
        async with self._db.read_session() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _event_to_domain(row) if row else None

    async def create_event(self, new: NewEvent) -> Event:
        row = EventORM(
            title=new.title,
            role=new.fixture.role.value if new.fixture else None,
            opponent=new.fixture.opponent if new.fixture else None,
            date=_as_utc(new.date),
            start_time=new.start_time,
            end_time=new.end_time,
            description=new.description,
            venue=new.venue.value if new.venue else None,
            home_score=new.home_score,
            away_score=new.away_score,
            external_id=new.external_id,
        )
        async with self._db.write_session() as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            event = _event_to_domain(row, with_lineup=False)
        logger.debug("event_created", event_id=str(event.id), title=event.title)
        return event

    async def update_event(self, event_id: uuid.UUID, update: EventUpdate) -> Event:
        changes = update.changes()
        async with self._db.write_session() as session:
            row = await session.get(EventORM, event_id)
            if row is None:
                raise LookupError(f"event {event_id} not found")
            for field, value in changes.items():
                if isinstance(value, Venue):
                    value = value.value
                setattr(row, field, value)
            await session.flush()
            return _event_to_domain(row)

    async def upsert_lineup(self, lineup: Lineup) -> Lineup:
        players = [p.model_dump(mode="json") for p in lineup.players]
        coach = lineup.coach.model_dump(mode="json") if lineup.coach else None
        async with self._db.write_session() as session:
            stmt = select(LineupORM).where(LineupORM.event_id == lineup.event_id)
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                row = LineupORM(event_id=lineup.event_id)
                session.add(row)
            row.formation = lineup.formation
            row.players = players
            row.coach = coach
            row.last_updated = lineup.last_updated
            await session.flush()
            return _lineup_to_domain(row)

    async def list_events(self) -> list[Event]:
        stmt = select(EventORM).order_by(EventORM.date)
        async with self._db.read_session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_event_to_domain(r) for r in rows]

    async def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        async with self._db.read_session() as session:
            row = await session.get(EventORM, event_id)
            return _event_to_domain(row) if row else None

    async def get_lineup(self, event_id: uuid.UUID) -> Optional[Lineup]:
        stmt = select(LineupORM).where(LineupORM.event_id == event_id)
        async with self._db.read_session() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _lineup_to_domain(row) if row else None
