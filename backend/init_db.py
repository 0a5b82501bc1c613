#!/usr/bin/env python3
"""
Create the Matchday schema (events, lineups) if it does not exist.
Safe to re-run. From backend/: python -m init_db
Requires MD_DATABASE_URL (or DATABASE_URL) in the environment or .env.
"""
from __future__ import annotations

import asyncio

from shared.config import get_settings
from shared.models.orm import Base
from shared.utils.database import DatabaseManager
from shared.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def create_schema(db: DatabaseManager) -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("schema_ready", tables=sorted(Base.metadata.tables))


async def main() -> None:
    settings = get_settings()
    setup_logging("init-db")
    db = DatabaseManager(settings)
    await db.connect()
    try:
        await create_schema(db)
    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
