"""
Scheduler service for Matchday.
Runs the full sync on a fixed interval. Uses Redis leader election so that
only one replica syncs at a time.
"""
from __future__ import annotations

import asyncio
import signal
import time
import uuid

from shared.config import Settings, get_settings
from shared.models.domain import SyncReport
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import LAST_SYNC_TIMESTAMP, SCHEDULER_LEADER, start_metrics_server
from shared.utils.redis_manager import RedisManager

from ingest.providers.base import BaseFeedProvider
from ingest.providers.football_data import FootballDataFeed
from sync.orchestrator import run_sync, team_from_settings
from sync.store import EventStore, SqlEventStore

logger = get_logger(__name__)

LEADER_ROLE = "sync"


class SyncScheduler:
    """
    Main scheduler that:
    1. Acquires (and keeps renewing) leadership via Redis
    2. Runs a sync as soon as it leads, then every sync_interval_s
    3. Steps down cleanly on shutdown
    """

    def __init__(
        self,
        redis: RedisManager,
        store: EventStore,
        feed: BaseFeedProvider,
        settings: Settings | None = None,
    ) -> None:
        self._redis = redis
        self._store = store
        self._feed = feed
        self._settings = settings or get_settings()
        self._instance_id = self._settings.instance_id or str(uuid.uuid4())[:8]
        self._is_leader = False
        self._next_run_at = 0.0
        self._shutdown = asyncio.Event()

    @property
    def is_leader(self) -> bool:
        return self._is_leader

    # ── Leader election ─────────────────────────────────────────────────

    async def _acquire_leadership(self) -> bool:
        """Attempt to acquire or renew sync leadership."""
        ttl = self._settings.scheduler_leader_ttl_s
        if self._is_leader:
            renewed = await self._redis.renew_leader(LEADER_ROLE, self._instance_id, ttl)
            if not renewed:
                logger.warning("leadership_lost", instance_id=self._instance_id)
                self._is_leader = False
                SCHEDULER_LEADER.set(0)
            return renewed

        acquired = await self._redis.try_acquire_leader(LEADER_ROLE, self._instance_id, ttl)
        if acquired:
            self._is_leader = True
            # A new leader syncs straight away.
            self._next_run_at = 0.0
            SCHEDULER_LEADER.set(1)
            logger.info("leadership_acquired", instance_id=self._instance_id)
        return acquired

    async def _release_leadership(self) -> None:
        if not self._is_leader:
            return
        await self._redis.release_leader(LEADER_ROLE, self._instance_id)
        self._is_leader = False
        SCHEDULER_LEADER.set(0)
        logger.info("leadership_released", instance_id=self._instance_id)

    # ── Sync ────────────────────────────────────────────────────────────

    async def _renew_while_syncing(self) -> None:
        """Keep the leader lock alive for the length of a sync run."""
        while self._is_leader:
            await asyncio.sleep(self._settings.scheduler_leader_renew_s)
            try:
                await self._acquire_leadership()
            except Exception as exc:
                logger.error("leader_renew_error", error=str(exc), exc_info=True)

    async def run_once(self) -> SyncReport:
        renewer = asyncio.create_task(self._renew_while_syncing())
        try:
            report = await run_sync(
                self._store, self._feed, team_from_settings(self._settings), settings=self._settings
            )
        finally:
            renewer.cancel()
            try:
                await renewer
            except asyncio.CancelledError:
                pass
        LAST_SYNC_TIMESTAMP.labels(result="ok" if report.ok else "failed").set(time.time())
        if report.ok:
            logger.info("scheduled_sync_completed", lines=len(report.log), outcomes=len(report.outcomes))
        else:
            logger.error("scheduled_sync_failed", error=report.error, log=report.log)
        return report

    async def _tick(self) -> None:
        if not await self._acquire_leadership():
            return
        if time.monotonic() >= self._next_run_at:
            await self.run_once()
            self._next_run_at = time.monotonic() + self._settings.sync_interval_s

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early on shutdown."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    # ── Main loop ───────────────────────────────────────────────────────

    async def run(self) -> None:
        while not self._shutdown.is_set():
            try:
                await self._tick()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("scheduler_loop_error", error=str(exc), exc_info=True)
            await self._sleep(self._settings.scheduler_leader_renew_s)
        await self._release_leadership()

    def request_shutdown(self) -> None:
        self._shutdown.set()


async def main() -> None:
    """Scheduler service entrypoint."""
    settings = get_settings()
    setup_logging("scheduler")
    start_metrics_server(settings.metrics_port)

    redis = RedisManager(settings)
    db = DatabaseManager(settings)
    await redis.connect()
    await db.connect()

    feed = FootballDataFeed.from_settings(settings)
    await feed.start()
    service = SyncScheduler(redis, SqlEventStore(db), feed, settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, service.request_shutdown)

    logger.info(
        "scheduler_service_started",
        instance_id=settings.instance_id,
        interval_s=settings.sync_interval_s,
    )

    try:
        await service.run()
    finally:
        await feed.close()
        await db.disconnect()
        await redis.disconnect()
        logger.info("scheduler_service_stopped")


if __name__ == "__main__":
    asyncio.run(main())
