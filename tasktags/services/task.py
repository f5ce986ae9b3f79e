"""Task service with business logic."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import atomic
from ..core.errors import NotFoundError, ValidationFailedError
from ..filtering import filter_tasks_by_tags
from ..models import Tag, Task
from ..repositories import TagRepository, TaskRepository
from .associations import AssociationReplacer, distinct_ids
from .colors import ColorAssigner
from .tag_reconciler import TagReconciler


class TaskService:
    """
    Service for tasks and their tag membership.

    Tag membership changes only through the two ``set_task_tags_*``
    operations, both of which replace the whole set.
    """

    def __init__(self, db: AsyncSession, color_assigner: ColorAssigner | None = None):
        """Initialize the service with its repositories and collaborators."""
        self.db = db
        self.task_repo = TaskRepository(db)
        self.tag_repo = TagRepository(db)
        self.replacer = AssociationReplacer(db)
        self.reconciler = TagReconciler(db, color_assigner)

    async def create_task(self, name: str, description: str | None = None) -> Task:
        """
        Create a new task.

        Args:
            name: Task name
            description: Optional description

        Returns:
            Created task (with an empty tag list)

        Raises:
            ValidationFailedError: Name is blank
        """
        if not name or not name.strip():
            raise ValidationFailedError("Task name cannot be empty", field="name")

        async with atomic(self.db):
            task = await self.task_repo.create(
                Task(
                    name=name.strip(),
                    description=description.strip() if description else None,
                )
            )

        return await self.get_task(task.id)

    async def get_task(self, task_id: int) -> Task:
        """
        Get a task with its tags.

        Raises:
            NotFoundError: Task does not exist
        """
        task = await self.task_repo.get_by_id_with_tags(task_id)
        if not task:
            raise NotFoundError("Task", task_id)
        return task

    async def list_tasks(self, selected_tag_ids: Iterable[int] | None = None) -> list[Task]:
        """
        Get all tasks, optionally only those carrying every selected tag.

        Args:
            selected_tag_ids: Tag ids that must all be present (AND); empty
                or None means no filter

        Example:
            # task1={X}, task2={X, Y}, task3={Y}
            await service.list_tasks([X, Y])  # [task2]
        """
        tasks = await self.task_repo.get_all_with_tags()
        return filter_tasks_by_tags(tasks, set(selected_tag_ids or ()))

    async def update_task(
        self, task_id: int, name: str | None = None, description: str | None = None
    ) -> Task:
        """
        Edit the name and/or description of a task.

        Passing ``description=""`` clears the description; ``None`` leaves
        a field untouched.

        Raises:
            NotFoundError: Task does not exist
            ValidationFailedError: New name is blank
        """
        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        if name is not None and not name.strip():
            raise ValidationFailedError("Task name cannot be empty", field="name")

        updates: dict[str, str | None] = {}
        if name:
            updates["name"] = name.strip()
        if description is not None:
            updates["description"] = description.strip() or None

        if updates:
            async with atomic(self.db):
                await self.task_repo.update(task_id, **updates)

        return await self.get_task(task_id)

    async def toggle_done(self, task_id: int) -> Task:
        """
        Flip the completion flag of a task.

        Raises:
            NotFoundError: Task does not exist
        """
        async with atomic(self.db):
            task = await self.task_repo.toggle_done(task_id)
        if not task:
            raise NotFoundError("Task", task_id)

        return await self.get_task(task_id)

    async def delete_task(self, task_id: int) -> bool:
        """
        Delete a task and all of its tag associations.

        Raises:
            NotFoundError: Task does not exist
        """
        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        async with atomic(self.db):
            deleted = await self.task_repo.delete(task_id)

        return deleted

    async def set_task_tags_by_id(self, task_id: int, tag_ids: Iterable[int]) -> list[int]:
        """
        Replace the task's tags with the given tag ids.

        Args:
            task_id: Task ID
            tag_ids: Tag ids from the client; repeats are dropped silently

        Returns:
            Distinct tag ids now attached to the task

        Raises:
            NotFoundError: Task or one of the tags does not exist
                (checked before anything is written)
        """
        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        requested = distinct_ids(tag_ids)
        found = {tag.id for tag in await self.tag_repo.find_by_ids(requested)}
        unknown = [tag_id for tag_id in requested if tag_id not in found]
        if unknown:
            raise NotFoundError("Tag", unknown if len(unknown) > 1 else unknown[0])

        return await self.replacer.replace(task_id, requested)

    async def set_task_tags_by_string(self, task_id: int, tag_string: str | None) -> list[Tag]:
        """
        Replace the task's tags with the tags named in a free-text string.

        Missing tags are created on the fly. Tag creation and the association
        rewrite form one unit: if either fails, neither is applied and the
        task keeps its previous tags.

        Args:
            task_id: Task ID
            tag_string: Space-separated names, e.g. "urgent home"; a blank
                string clears all tags

        Returns:
            Resolved tags: existing ones first, then newly created ones

        Raises:
            NotFoundError: Task does not exist (nothing is written)
            ValidationFailedError: A tag name is too long
            StorageError: The write failed and was rolled back

        Example:
            tags = await service.set_task_tags_by_string(1, "Urgent urgent home")
            [t.name for t in tags]  # ["Urgent", "home"]
        """
        names = self.reconciler.parse(tag_string)

        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        async with atomic(self.db):
            tags = await self.reconciler.resolve(names)
            await self.replacer.replace(task_id, [tag.id for tag in tags])

        return tags
