#!/usr/bin/env python3
"""
Seed script to populate the database with sample tasks and tags.

Goes through the service layer, so tags are reconciled and colored exactly
as they would be through the API.

Usage:
    python scripts/seed_data.py
"""

import asyncio

from tasktags.core.config import settings
from tasktags.core.database import AsyncSessionLocal, init_db
from tasktags.core.logging import get_logger, setup_logging
from tasktags.services import TaskService, build_color_assigner

logger = get_logger("seed_data")

# (name, description, tag string, done)
TASKS = [
    ("Renew car insurance", "Compare at least three offers", "car urgent money", False),
    ("Book dentist appointment", None, "health", False),
    ("Buy groceries", "Milk, bread, coffee", "home shopping", True),
    ("Fix leaking kitchen tap", None, "home urgent", False),
    ("Review pull requests", "Backlog from last sprint", "work review", False),
    ("Prepare quarterly report", None, "work money Urgent", False),
    ("Squash with Alex", "Court 3, 19:00", "sport", True),
    ("Read chapter 4 of the SQLAlchemy docs", None, "learning work", False),
    ("Practice guitar scales", None, "music learning", False),
    ("Plan weekend trip", None, "", False),
]


async def seed() -> None:
    await init_db()

    async with AsyncSessionLocal() as session:
        service = TaskService(session, build_color_assigner(settings))

        for name, description, tag_string, done in TASKS:
            task = await service.create_task(name=name, description=description)
            tags = await service.set_task_tags_by_string(task.id, tag_string)
            if done:
                await service.toggle_done(task.id)
            logger.info(
                "Task seeded",
                extra={"task_id": task.id, "task_name": name, "tags": [t.name for t in tags]},
            )

        await session.commit()

    logger.info("Seeding finished", extra={"tasks": len(TASKS)})


if __name__ == "__main__":
    setup_logging(log_level=settings.LOG_LEVEL, log_format="simple")
    asyncio.run(seed())
