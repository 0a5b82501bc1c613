"""
Lineup endpoints.

GET  /v1/lineups?event_id=...  — stored lineup for an event.
POST /v1/lineups               — fetch a match's lineup from the feed and
                                 replace the event's stored lineup with it.
"""
from __future__ import annotations

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from shared.models.domain import Lineup, TrackedTeam
from shared.models.enums import SkipReason
from shared.utils.logging import get_logger

from api.dependencies import get_feed, get_store, get_team
from ingest.providers.base import BaseFeedProvider
from sync.errors import ItemSkipped
from sync.lineups import refresh_event_lineup
from sync.store import EventStore

logger = get_logger(__name__)
router = APIRouter(prefix="/v1/lineups", tags=["lineups"])

SKIP_STATUS = {
    SkipReason.LINEUP_UNAVAILABLE: 404,
    SkipReason.TEAM_NOT_IN_MATCH: 400,
    SkipReason.TRANSFORM_FAILED: 502,
}


class LineupRefreshRequest(BaseModel):
    event_id: Optional[uuid.UUID] = None
    external_id: Optional[int] = None


def serialize_lineup(lineup: Lineup) -> dict[str, Any]:
    return lineup.model_dump(mode="json")


@router.get("")
async def get_lineup(
    event_id: Optional[uuid.UUID] = Query(None, description="Event whose lineup to return"),
    store: EventStore = Depends(get_store),
) -> dict[str, Any]:
    if event_id is None:
        raise HTTPException(status_code=400, detail="event_id is required")
    lineup = await store.get_lineup(event_id)
    if lineup is None:
        raise HTTPException(status_code=404, detail="Lineup not found")
    return serialize_lineup(lineup)


@router.post("")
async def refresh_lineup(
    body: LineupRefreshRequest,
    store: EventStore = Depends(get_store),
    feed: BaseFeedProvider = Depends(get_feed),
    team: TrackedTeam = Depends(get_team),
) -> dict[str, Any]:
    """Create or fully replace an event's lineup from feed match ``external_id``."""
    if body.event_id is None or body.external_id is None:
        raise HTTPException(status_code=400, detail="event_id and external_id are required")

    event = await store.get_event(body.event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if not event.has_score:
        raise HTTPException(status_code=409, detail="Event has no final score yet")

    feed.ensure_configured()
    try:
        lineup = await refresh_event_lineup(store, feed, team, event.id, body.external_id)
    except ItemSkipped as exc:
        logger.info("lineup_refresh_skipped", event_id=str(event.id), reason=exc.reason.value, error=str(exc))
        raise HTTPException(status_code=SKIP_STATUS.get(exc.reason, 400), detail=str(exc)) from exc
    return serialize_lineup(lineup)
