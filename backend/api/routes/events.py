"""
Calendar event endpoints.

GET  /v1/events — all events ordered by date, lineups embedded.
POST /v1/events — add a manual calendar entry.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from shared.models.domain import Event, Fixture, NewEvent, TrackedTeam
from shared.utils.logging import get_logger

from api.dependencies import get_store, get_team
from sync.store import EventStore

logger = get_logger(__name__)
router = APIRouter(prefix="/v1/events", tags=["events"])

REQUIRED_FIELDS = ("title", "date", "start_time", "end_time")


class EventCreateRequest(BaseModel):
    title: Optional[str] = None
    date: Optional[datetime] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    description: Optional[str] = None


def serialize_event(event: Event) -> dict[str, Any]:
    return event.model_dump(mode="json")


@router.get("")
async def list_events(store: EventStore = Depends(get_store)) -> list[dict[str, Any]]:
    events = await store.list_events()
    return [serialize_event(e) for e in events]


@router.post("", status_code=201)
async def create_event(
    body: EventCreateRequest,
    store: EventStore = Depends(get_store),
    team: TrackedTeam = Depends(get_team),
) -> dict[str, Any]:
    """
    Create a manual event.

    A title in the canonical "<Team> vs <Opponent>" / "<Team> @ <Opponent>"
    form is stored with fixture identity so score sync can pick it up.
    """
    missing = [f for f in REQUIRED_FIELDS if not getattr(body, f)]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

    date = body.date if body.date.tzinfo else body.date.replace(tzinfo=timezone.utc)
    fixture = Fixture.parse_title(team.name, body.title)
    event = await store.create_event(
        NewEvent(
            title=fixture.render_title(team.name) if fixture else body.title,
            fixture=fixture,
            date=date,
            start_time=body.start_time,
            end_time=body.end_time,
            description=body.description,
            venue=fixture.role.venue if fixture else None,
        )
    )
    logger.info("event_created_manually", event_id=str(event.id), title=event.title)
    return serialize_event(event)
