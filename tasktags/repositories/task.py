"""Task repository with specific queries."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Task, task_tags
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """
    Repository for tasks.

    Every "with tags" query uses ``populate_existing`` so that a task already
    in the identity map picks up association rows rewritten with Core
    statements by TaskTagRepository.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Task, db)

    async def get_by_id_with_tags(self, id: int) -> Task | None:
        """
        Get a task with its tags eagerly loaded.

        Usage:
            task = await repo.get_by_id_with_tags(1)
            print(task.tags)  # no extra query
        """
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.tags))
            .where(Task.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_all_with_tags(self) -> list[Task]:
        """
        Get every task with its tags, ordered by ID.

        SQL equivalent:
            SELECT * FROM tasks ORDER BY id;
            SELECT tags.* ... WHERE task_tags.task_id IN (...);  -- selectinload
        """
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.tags))
            .order_by(Task.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def toggle_done(self, task_id: int) -> Task | None:
        """
        Flip the completion flag.

        Returns:
            Updated task or None
        """
        task = await self.get_by_id(task_id)
        if not task:
            return None

        task.done = not task.done
        await self.db.flush()
        return task

    async def delete(self, id: int) -> bool:
        """
        Delete a task together with all of its tag associations.

        SQL equivalent:
            DELETE FROM task_tags WHERE task_id={id};
            DELETE FROM tasks WHERE id={id};
        """
        await self.db.execute(delete(task_tags).where(task_tags.c.task_id == id))
        return await super().delete(id)
