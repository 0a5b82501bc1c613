#!/usr/bin/env python3
"""
Show what the feed has for one opponent, to debug score and fixture matching.

Lists the tracked team's recent finished and upcoming matches whose opponent
name contains the given text, with the full match detail (lineups included)
for the first finished hit.

Usage (from backend/):
  python -m scripts.inspect_feed Fulham [--window 20]
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from shared.config import get_settings
from shared.models.domain import FeedMatch
from shared.utils.logging import setup_logging

from ingest.providers.football_data import FootballDataFeed
from sync.errors import SyncError
from sync.fixtures import fixture_of, opponent_base_name
from sync.orchestrator import team_from_settings


def describe_match(match: FeedMatch) -> str:
    final = match.final_score
    score = f"{final[0]}-{final[1]}" if final else "-"
    return (
        f"  #{match.id} {match.utc_date:%Y-%m-%d %H:%M} "
        f"{match.home_team.name} vs {match.away_team.name} [{match.status}] {score}"
    )


async def inspect(opponent: str, window: int) -> int:
    settings = get_settings()
    team = team_from_settings(settings)
    async with FootballDataFeed.from_settings(settings) as feed:
        try:
            feed.ensure_configured()
            finished = await feed.get_finished_matches(team.id, window)
            upcoming = await feed.get_upcoming_matches(team.id)
        except SyncError as exc:
            print(f"Feed error: {exc}", file=sys.stderr)
            return 1

        hits = [m for m in finished if opponent in fixture_of(m, team).opponent]
        print(f"Finished matches against '{opponent}' (last {window}):")
        for match in hits:
            print(describe_match(match))
        if not hits:
            print("  none")

        print(f"Upcoming matches against '{opponent}':")
        upcoming_hits = [m for m in upcoming if opponent in fixture_of(m, team).opponent]
        for match in upcoming_hits:
            base = opponent_base_name(fixture_of(match, team).opponent)
            print(f"{describe_match(match)} (dedup name: {base!r})")
        if not upcoming_hits:
            print("  none")

        if hits:
            try:
                detail = await feed.get_match_by_id(hits[0].id)
            except SyncError as exc:
                print(f"Feed error: {exc}", file=sys.stderr)
                return 1
            print(f"\nDetail for match #{detail.id}:")
            print(json.dumps(detail.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect feed matches for one opponent")
    parser.add_argument("opponent", help="Text contained in the opponent's name, e.g. Fulham")
    parser.add_argument("--window", type=int, default=get_settings().finished_match_window)
    args = parser.parse_args(argv)
    setup_logging("inspect-feed")
    sys.exit(asyncio.run(inspect(args.opponent, args.window)))


if __name__ == "__main__":
    main()
