"""
Sync trigger endpoint.

GET|POST /v1/sync — run one full sync (scores, lineups, upcoming fixtures).

Guarded by ``Authorization: Bearer <MD_CRON_SECRET>`` when a secret is
configured. Without one the endpoint is open, except in production where it
refuses to run.
"""
from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from shared.config import Settings
from shared.utils.logging import get_logger

from api.dependencies import get_app_settings, get_feed, get_store
from ingest.providers.base import BaseFeedProvider
from sync.orchestrator import run_sync, team_from_settings
from sync.store import EventStore

logger = get_logger(__name__)
router = APIRouter(prefix="/v1/sync", tags=["sync"])


def require_cron_secret(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    secret = settings.cron_secret
    if not secret:
        if settings.is_production:
            logger.error("sync_trigger_refused", reason="cron_secret_unset")
            raise HTTPException(status_code=503, detail="Sync trigger is not configured")
        return
    supplied = request.headers.get("authorization", "")
    if not hmac.compare_digest(supplied.encode(), f"Bearer {secret}".encode()):
        logger.warning("sync_trigger_unauthorized", client=request.client.host if request.client else "unknown")
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.api_route("", methods=["GET", "POST"], dependencies=[Depends(require_cron_secret)])
async def trigger_sync(
    store: EventStore = Depends(get_store),
    feed: BaseFeedProvider = Depends(get_feed),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Run a sync and return its ordered log; 500 with the partial log on failure."""
    report = await run_sync(store, feed, team_from_settings(settings), settings=settings)
    if report.ok:
        return JSONResponse(content={"ok": True, "log": report.log})
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": "sync_failed",
            "log": report.log,
            "detail": report.error,
        },
    )
