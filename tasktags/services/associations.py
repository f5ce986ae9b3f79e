"""Replace-semantics for a task's tag membership."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import atomic
from ..core.errors import NotFoundError, ReferenceViolationError
from ..core.logging import get_logger
from ..repositories import TagRepository, TaskRepository, TaskTagRepository

logger = get_logger(__name__)


def distinct_ids(tag_ids: Iterable[int]) -> list[int]:
    """De-duplicate ids, keeping the first occurrence order."""
    return list(dict.fromkeys(tag_ids))


class AssociationReplacer:
    """
    Rewrites the full set of tags attached to a task.

    Replace, not merge: every previous association of the task is removed
    and exactly one row per distinct tag id is written. The clear and the
    rebuild happen in one ``atomic()`` scope, so either both are visible or
    neither is.

    Tag ids are not checked up front. Callers that take ids from a client
    validate them first (TaskService.set_task_tags_by_id); TagReconciler only
    ever passes ids it has just loaded or created. An id the store still
    rejects (never existed, or deleted concurrently) fails the whole replace
    with NotFoundError and leaves the previous tags in place.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.tag_repo = TagRepository(db)
        self.task_tag_repo = TaskTagRepository(db)

    async def replace(self, task_id: int, tag_ids: Iterable[int]) -> list[int]:
        """
        Set the task's tags to exactly ``tag_ids``.

        Args:
            task_id: ID of an existing task
            tag_ids: New membership; repeats are dropped silently

        Returns:
            The distinct tag ids now attached, in first-seen order

        Raises:
            NotFoundError: Task or one of the tags does not exist (nothing is
                written, or the rewrite is rolled back)
            StorageError: The write failed and was rolled back

        Example:
            # task 1 has {A, B}
            await replacer.replace(1, [B, C, C])
            # task 1 has {B, C}
        """
        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        new_ids = distinct_ids(tag_ids)

        try:
            async with atomic(self.db):
                removed = await self.task_tag_repo.clear(task_id)
                added = await self.task_tag_repo.insert(task_id, new_ids)
        except ReferenceViolationError as exc:
            found = {tag.id for tag in await self.tag_repo.find_by_ids(new_ids)}
            unknown = [tag_id for tag_id in new_ids if tag_id not in found]
            if not unknown:
                # The task itself went away after the existence check
                raise NotFoundError("Task", task_id) from exc
            raise NotFoundError("Tag", unknown if len(unknown) > 1 else unknown[0]) from exc

        logger.debug(
            "Task tags replaced",
            extra={"task_id": task_id, "removed": removed, "added": added},
        )
        return new_ids
