"""Repository for the task_tags association table."""

from collections.abc import Iterable

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import task_tags


class TaskTagRepository:
    """
    Low-level access to task <-> tag association rows.

    Works on the junction table with Core statements. Callers compose
    ``clear`` and ``insert`` inside one ``atomic()`` scope to replace a
    task's membership.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tag_ids(self, task_id: int) -> list[int]:
        """
        SQL equivalent:
            SELECT tag_id FROM task_tags WHERE task_id = {task_id} ORDER BY tag_id;
        """
        result = await self.db.execute(
            select(task_tags.c.tag_id)
            .where(task_tags.c.task_id == task_id)
            .order_by(task_tags.c.tag_id)
        )
        return list(result.scalars().all())

    async def clear(self, task_id: int) -> int:
        """
        Remove every association of a task.

        Returns:
            Number of removed rows

        SQL equivalent:
            DELETE FROM task_tags WHERE task_id = {task_id};
        """
        result = await self.db.execute(delete(task_tags).where(task_tags.c.task_id == task_id))
        return result.rowcount

    async def insert(self, task_id: int, tag_ids: Iterable[int]) -> int:
        """
        Link a task to each of ``tag_ids``.

        The ids must already be distinct: a repeated pair violates the
        composite primary key.

        SQL equivalent:
            INSERT INTO task_tags (task_id, tag_id) VALUES ({task_id}, t1), ({task_id}, t2), ...;
        """
        rows = [{"task_id": task_id, "tag_id": tag_id} for tag_id in tag_ids]
        if not rows:
            return 0

        await self.db.execute(insert(task_tags), rows)
        return len(rows)

    async def count(self) -> int:
        """Total number of association rows."""
        result = await self.db.execute(select(func.count()).select_from(task_tags))
        return result.scalar_one()
