"""
Seed script for Matchday.

Loads the season's fixture list as manual calendar entries (no feed ids, so
the sync links them to the feed on its next run) plus one finished fixture
with its starting lineup already laid out. Fixtures seeded earlier are
removed first.

Usage:
    docker compose exec api python -m seed
"""
from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import select

from shared.config import Settings, get_settings
from shared.models.domain import Coach, Fixture, Lineup, NewEvent
from shared.models.enums import Role
from shared.models.orm import EventORM
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging

from init_db import create_schema
from sync.fixtures import clock, describe
from sync.formation import transform_lineup
from sync.store import EventStore, SqlEventStore

logger = get_logger(__name__)

MATCH_DURATION = timedelta(hours=2)

# (kickoff UTC, opponent, role, tracked team goals, opponent goals)
SEASON_FIXTURES: list[tuple[str, str, Role, Optional[int], Optional[int]]] = [
    ("2026-02-07T12:30", "Tottenham Hotspur", Role.HOME, 2, 0),
    ("2026-02-10T20:15", "West Ham United", Role.AWAY, 1, 1),
    ("2026-02-23T20:00", "Everton", Role.AWAY, None, None),
    ("2026-03-01T14:00", "Crystal Palace", Role.HOME, None, None),
    ("2026-03-04T20:15", "Newcastle United", Role.AWAY, None, None),
    ("2026-03-14T16:00", "Aston Villa", Role.HOME, None, None),
    ("2026-03-20T21:00", "AFC Bournemouth", Role.AWAY, None, None),
    ("2026-04-11T15:00", "Leeds United", Role.HOME, None, None),
    ("2026-04-18T15:00", "Chelsea", Role.AWAY, None, None),
    ("2026-04-25T15:00", "Brentford", Role.HOME, None, None),
    ("2026-05-02T15:00", "Liverpool", Role.HOME, None, None),
    ("2026-05-09T15:00", "Sunderland", Role.AWAY, None, None),
    ("2026-05-17T15:00", "Nottingham Forest", Role.HOME, None, None),
    ("2026-05-24T16:00", "Brighton & Hove Albion", Role.AWAY, None, None),
]

# Finished fixture with a published lineup (football-data.org match 538021).
LINEUP_FIXTURE: dict[str, Any] = {
    "kickoff": "2026-02-01T14:00",
    "opponent": "Fulham",
    "role": Role.HOME,
    "score": (3, 2),
    "external_id": 538021,
    "formation": "4-2-3-1",
    "coach": {"name": "Michael Carrick", "nationality": "England"},
    "players": [
        {"id": 1, "name": "André Onana", "shirtNumber": 24, "position": "Goalkeeper"},
        {"id": 2, "name": "Diogo Dalot", "shirtNumber": 20, "position": "Right-Back"},
        {"id": 3, "name": "Matthijs de Ligt", "shirtNumber": 4, "position": "Centre-Back"},
        {"id": 4, "name": "Lisandro Martínez", "shirtNumber": 6, "position": "Centre-Back"},
        {"id": 5, "name": "Noussair Mazraoui", "shirtNumber": 3, "position": "Left-Back"},
        {"id": 6, "name": "Casemiro", "shirtNumber": 18, "position": "Defensive Midfield"},
        {"id": 7, "name": "Kobbie Mainoo", "shirtNumber": 37, "position": "Defensive Midfield"},
        {"id": 8, "name": "Amad Diallo", "shirtNumber": 16, "position": "Right Wing"},
        {"id": 9, "name": "Bruno Fernandes", "shirtNumber": 8, "position": "Attacking Midfield"},
        {"id": 10, "name": "Alejandro Garnacho", "shirtNumber": 17, "position": "Left Wing"},
        {"id": 11, "name": "Rasmus Højlund", "shirtNumber": 11, "position": "Centre-Forward"},
    ],
}


def _kickoff(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def build_fixture_event(
    settings: Settings,
    kickoff: datetime,
    opponent: str,
    role: Role,
    score: tuple[Optional[int], Optional[int]] = (None, None),
    external_id: Optional[int] = None,
) -> NewEvent:
    fixture = Fixture(role=role, opponent=opponent)
    return NewEvent(
        title=fixture.render_title(settings.team_name),
        fixture=fixture,
        date=kickoff,
        start_time=clock(kickoff),
        end_time=clock(kickoff + MATCH_DURATION),
        description=describe(role, settings.competition_name, settings.home_ground),
        venue=role.venue,
        home_score=score[0],
        away_score=score[1],
        external_id=external_id,
    )


async def remove_seeded_fixtures(db: DatabaseManager) -> int:
    """Delete every event carrying fixture identity; lineups go with them."""
    async with db.write_session() as session:
        rows = (await session.execute(select(EventORM).where(EventORM.role.is_not(None)))).scalars().all()
        for row in rows:
            await session.delete(row)
    return len(rows)


async def seed_fixtures(store: EventStore, settings: Settings) -> int:
    played = LINEUP_FIXTURE
    event = await store.create_event(
        build_fixture_event(
            settings,
            _kickoff(played["kickoff"]),
            played["opponent"],
            played["role"],
            score=played["score"],
            external_id=played["external_id"],
        )
    )
    await store.upsert_lineup(
        Lineup(
            event_id=event.id,
            formation=played["formation"],
            players=transform_lineup(played["players"], played["formation"]),
            coach=Coach(**played["coach"]),
        )
    )
    logger.info("seeded_fixture_with_lineup", title=event.title, formation=played["formation"])

    for kickoff, opponent, role, ours, theirs in SEASON_FIXTURES:
        event = await store.create_event(
            build_fixture_event(settings, _kickoff(kickoff), opponent, role, score=(ours, theirs))
        )
        logger.info("seeded_fixture", title=event.title, date=event.date.isoformat())
    return len(SEASON_FIXTURES) + 1


async def seed() -> None:
    settings = get_settings()
    setup_logging("seed")

    db = DatabaseManager(settings)
    await db.connect()
    try:
        await create_schema(db)
        removed = await remove_seeded_fixtures(db)
        created = await seed_fixtures(SqlEventStore(db), settings)
        logger.info("seed_complete", removed=removed, created=created)
    except Exception as exc:
        logger.error("seed_failed", error=str(exc), exc_info=True)
        sys.exit(1)
    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(seed())
