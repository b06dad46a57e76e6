"""
Roster — tournament registration core.
Entry point: configures logging and creates the database schema.

    python -m roster.main
"""
import asyncio
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from roster.config import settings
from roster.models.base import Base, engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables (and the live-registration unique index)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")


async def main() -> None:
    logger.info("Preparing roster database…")
    try:
        await create_tables()
    except (SQLAlchemyError, OSError) as e:
        logger.critical(
            "Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Start PostgreSQL or use SQLite "
            "(DATABASE_URL=sqlite+aiosqlite:///./roster.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
