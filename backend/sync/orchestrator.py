"""
Sync orchestrator: one full reconciliation run.

Phases run strictly in order (scores, lineups, fixtures) against a single
store and feed. Every action and skip lands in the run's ordered log. The
first fatal error ends the run; whatever was logged before it is returned
with the error so the caller can tell partial progress from a clean run.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from shared.config import Settings, get_settings
from shared.models.domain import SyncOutcome, SyncReport, TrackedTeam, utcnow
from shared.models.enums import SyncPhase
from shared.utils.logging import get_logger, sync_run_context
from shared.utils.metrics import SYNC_PHASE_DURATION, SYNC_RUNS, atrack_latency

from ingest.providers.base import BaseFeedProvider
from sync.errors import SyncError
from sync.fixtures import merge_upcoming
from sync.lineups import reconcile_lineups
from sync.scores import reconcile_scores
from sync.store import EventStore

logger = get_logger(__name__)

PhaseRunner = Callable[[list[SyncOutcome]], Awaitable[list[SyncOutcome]]]

PHASE_HEADINGS = {
    SyncPhase.SCORES: ("Syncing scores...", "  No scores to update."),
    SyncPhase.LINEUPS: ("Syncing lineups...", "  No lineups to update."),
    SyncPhase.FIXTURES: ("Syncing upcoming matches...", "  No upcoming matches."),
}


def team_from_settings(settings: Settings | None = None) -> TrackedTeam:
    settings = settings or get_settings()
    return TrackedTeam(id=settings.team_id, name=settings.team_name)


class SyncRun:
    """Accumulates the human-readable log and outcomes of one run."""

    def __init__(self) -> None:
        self.log: list[str] = []
        self.outcomes: list[SyncOutcome] = []
        self.started_at = utcnow()

    def push(self, line: str) -> None:
        self.log.append(line)

    async def phase(self, phase: SyncPhase, runner: PhaseRunner) -> None:
        heading, empty = PHASE_HEADINGS[phase]
        self.push(heading)
        logger.info("sync_phase_started", phase=phase.value)
        produced: list[SyncOutcome] = []
        try:
            async with atrack_latency(SYNC_PHASE_DURATION, phase=phase.value):
                await runner(produced)
        finally:
            # Outcomes recorded before a fatal error still belong in the log.
            self.outcomes.extend(produced)
            for outcome in produced:
                self.push(outcome.message())
        if not produced:
            self.push(empty)
        logger.info("sync_phase_finished", phase=phase.value, outcomes=len(produced))

    def report(self, ok: bool, error: Optional[str] = None) -> SyncReport:
        return SyncReport(
            ok=ok,
            log=list(self.log),
            outcomes=list(self.outcomes),
            error=error,
            started_at=self.started_at,
            finished_at=utcnow(),
        )


async def _run_phases(
    run: SyncRun,
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam,
    settings: Settings,
    now: datetime,
) -> None:
    await run.phase(
        SyncPhase.SCORES,
        lambda out: reconcile_scores(
            store, feed, team, window=settings.finished_match_window, now=now, outcomes=out
        ),
    )
    await run.phase(
        SyncPhase.LINEUPS,
        lambda out: reconcile_lineups(store, feed, team, outcomes=out),
    )
    await run.phase(
        SyncPhase.FIXTURES,
        lambda out: merge_upcoming(
            store,
            feed,
            team,
            dedup_window=timedelta(hours=settings.dedup_window_hours),
            match_duration=timedelta(hours=settings.match_duration_hours),
            competition=settings.competition_name,
            home_ground=settings.home_ground,
            limit=settings.upcoming_match_limit,
            outcomes=out,
        ),
    )


async def run_sync(
    store: EventStore,
    feed: BaseFeedProvider,
    team: TrackedTeam | None = None,
    settings: Settings | None = None,
    now: Optional[datetime] = None,
) -> SyncReport:
    """
    Run scores, lineups and fixtures in order and report what happened.

    Never raises for sync failures: a configuration problem, an unreachable
    feed or a store error produces a report with ok=False, the partial log and
    the error text.
    """
    settings = settings or get_settings()
    team = team or team_from_settings(settings)
    now = now or datetime.now(timezone.utc)
    run = SyncRun()
    run.push(f"Sync started at {run.started_at.isoformat()}")

    with sync_run_context(team.id):
        logger.info("sync_started", team=team.name)
        try:
            feed.ensure_configured()
            await _run_phases(run, store, feed, team, settings, now)
        except SyncError as exc:
            logger.error("sync_failed", error=str(exc), error_type=type(exc).__name__)
            SYNC_RUNS.labels(result="failed").inc()
            return run.report(ok=False, error=str(exc))
        except Exception as exc:
            logger.exception("sync_failed_unexpected", error=str(exc))
            SYNC_RUNS.labels(result="failed").inc()
            return run.report(ok=False, error=f"{type(exc).__name__}: {exc}")

        run.push("Sync complete.")
        SYNC_RUNS.labels(result="ok").inc()
        logger.info("sync_completed", outcomes=len(run.outcomes))
        return run.report(ok=True)
