"""
FastAPI application factory for the Matchday API service.

Creates the app with:
- REST routes (events, lineups, sync trigger)
- Middleware stack
- Health and metrics endpoints
- Lifespan management (database and feed client startup/shutdown)
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from shared.config import get_settings
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging

from api.dependencies import init_dependencies
from api.middleware import setup_middleware
from api.routes.events import router as events_router
from api.routes.lineups import router as lineups_router
from api.routes.sync import router as sync_router
from ingest.providers.football_data import FootballDataFeed
from sync.store import SqlEventStore

logger = get_logger(__name__)

_CONNECT_RETRY_ATTEMPTS = 10
_CONNECT_RETRY_BASE_DELAY_S = 2.0


async def _connect_with_retry(connect_fn: Callable[[], Awaitable[None]], name: str) -> None:
    """Call async connect_fn(); retry with exponential backoff on failure."""
    for attempt in range(1, _CONNECT_RETRY_ATTEMPTS + 1):
        try:
            await connect_fn()
            return
        except Exception as exc:
            if attempt == _CONNECT_RETRY_ATTEMPTS:
                raise
            delay = _CONNECT_RETRY_BASE_DELAY_S * (2 ** (attempt - 1))
            logger.warning(
                "connect_retry",
                name=name,
                attempt=attempt,
                max_attempts=_CONNECT_RETRY_ATTEMPTS,
                delay_s=delay,
                error=str(exc),
            )
            await asyncio.sleep(delay)


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without a database or feed."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect the database and feed client on startup, release them on shutdown."""
    settings = get_settings()
    setup_logging("api")

    db = DatabaseManager(settings)
    await _connect_with_retry(db.connect, "Database")
    feed = FootballDataFeed.from_settings(settings)
    await feed.start()

    init_dependencies(SqlEventStore(db), feed)
    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        team_id=settings.team_id,
        feed_configured=bool(settings.football_data_api_key),
    )

    yield

    await feed.close()
    await db.disconnect()
    logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing."""
    app = FastAPI(
        title="Matchday API",
        description="Team fixtures, scores and lineups synchronized from a results feed",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_middleware(app)

    app.include_router(events_router)
    app.include_router(lineups_router)
    app.include_router(sync_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    @app.get("/metrics", tags=["system"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# For running with uvicorn directly
app = create_app()
