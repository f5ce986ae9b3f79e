"""
Database initialization script.

Creates every table directly through SQLAlchemy metadata. Handy for local
development; deployed databases are migrated with alembic.

Usage:
    python init_db.py          # create missing tables
    python init_db.py --reset  # drop everything first
"""

import asyncio
import sys

from tasktags.core.database import drop_db, init_db
from tasktags.core.logging import get_logger, setup_logging

logger = get_logger("init_db")


async def main(reset: bool = False):
    """Create all tables."""
    if reset:
        logger.warning("Dropping all tables")
        await drop_db()

    logger.info("Creating tables")
    await init_db()
    logger.info("Tables created")


if __name__ == "__main__":
    setup_logging(log_format="simple")
    asyncio.run(main(reset="--reset" in sys.argv[1:]))
