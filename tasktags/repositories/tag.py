"""Tag repository with specific queries."""

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Tag, Task, tag_name_key, task_tags
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """
    Repository for tags.

    Name lookups are case-insensitive: they go through ``Tag.name_key``,
    the lower-cased copy of the name that carries the unique constraint.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Get a tag by name, ignoring case.

        SQL equivalent:
            SELECT * FROM tags WHERE name_key = lower({name});

        Example:
            await repo.get_by_name("URGENT")  # finds the tag stored as "urgent"
        """
        result = await self.db.execute(select(Tag).where(Tag.name_key == tag_name_key(name)))
        return result.scalar_one_or_none()

    async def find_by_names(self, names: Iterable[str]) -> list[Tag]:
        """
        Get every tag whose name matches one of ``names``.

        Exact match ignoring case, not substring.

        SQL equivalent:
            SELECT * FROM tags WHERE name_key IN (lower(n1), lower(n2), ...);
        """
        keys = {tag_name_key(name) for name in names}
        if not keys:
            return []

        result = await self.db.execute(select(Tag).where(Tag.name_key.in_(keys)).order_by(Tag.id))
        return list(result.scalars().all())

    async def find_by_ids(self, ids: Iterable[int]) -> list[Tag]:
        """
        SQL equivalent:
            SELECT * FROM tags WHERE id IN (...);
        """
        id_set = set(ids)
        if not id_set:
            return []

        result = await self.db.execute(select(Tag).where(Tag.id.in_(id_set)).order_by(Tag.id))
        return list(result.scalars().all())

    async def insert_tags(self, tags: list[Tag]) -> list[Tag]:
        """
        Insert a batch of new tags with a single flush.

        Returns:
            The same tags with their IDs populated

        Example:
            # One round trip instead of one per tag
            new_tags = await repo.insert_tags([Tag(name="home"), Tag(name="work")])
        """
        if not tags:
            return []

        self.db.add_all(tags)
        await self.db.flush()
        for tag in tags:
            await self.db.refresh(tag)
        return tags

    async def get_tasks_for_tag(self, tag_id: int) -> list[Task]:
        """
        Get every task carrying the tag, each with its full tag list.

        SQL equivalent:
            SELECT tasks.*
            FROM tasks
            JOIN task_tags ON tasks.id = task_tags.task_id
            WHERE task_tags.tag_id = {tag_id}
            ORDER BY tasks.id;
        """
        result = await self.db.execute(
            select(Task)
            .join(task_tags, Task.id == task_tags.c.task_id)
            .where(task_tags.c.tag_id == tag_id)
            .options(selectinload(Task.tags))
            .order_by(Task.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().unique().all())

    async def delete(self, id: int) -> bool:
        """
        Delete a tag together with all of its task associations.

        The FK cascade covers this on PostgreSQL; the explicit DELETE keeps
        it true on SQLite connections without ``PRAGMA foreign_keys``.
        """
        await self.db.execute(delete(task_tags).where(task_tags.c.tag_id == id))
        return await super().delete(id)
