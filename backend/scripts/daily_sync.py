#!/usr/bin/env python3
"""
One-shot sync: scores, lineups, then upcoming fixtures.

Prints the run log and exits 1 when the run failed, so it can be wired to
cron or a CI schedule directly.

Usage (from backend/):
  python -m scripts.daily_sync [--refresh-lineups]
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from shared.config import get_settings
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging

from ingest.providers.football_data import FootballDataFeed
from sync.lineups import reconcile_lineups
from sync.orchestrator import run_sync, team_from_settings
from sync.store import SqlEventStore

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one Matchday sync")
    parser.add_argument(
        "--refresh-lineups",
        action="store_true",
        help="After the sync, fetch lineups again for events that already have one",
    )
    return parser.parse_args(argv)


async def run(refresh_lineups: bool = False) -> int:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.connect()
    try:
        store = SqlEventStore(db)
        async with FootballDataFeed.from_settings(settings) as feed:
            report = await run_sync(store, feed, team_from_settings(settings), settings=settings)
            for line in report.log:
                print(line)
            if not report.ok:
                print(f"Sync failed: {report.error}", file=sys.stderr)
                return 1
            if refresh_lineups:
                outcomes = await reconcile_lineups(
                    store, feed, team_from_settings(settings), refresh_existing=True
                )
                print("Refreshing existing lineups...")
                for outcome in outcomes:
                    print(outcome.message())
        return 0
    finally:
        await db.disconnect()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging("sync-cli")
    sys.exit(asyncio.run(run(refresh_lineups=args.refresh_lineups)))


if __name__ == "__main__":
    main()
