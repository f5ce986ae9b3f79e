"""Tag service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import atomic
from ..core.errors import NotFoundError, ValidationFailedError
from ..core.logging import get_logger
from ..models import Tag, Task
from ..repositories import TagRepository
from .colors import ColorAssigner, HashColorAssigner
from .tag_reconciler import check_tag_name_length

logger = get_logger(__name__)


class TagService:
    """
    Service for creating, renaming and deleting tags directly.

    Tags are also created implicitly by TagReconciler; both paths share
    the same color assigner and the same case-insensitive uniqueness rule.
    """

    def __init__(self, db: AsyncSession, color_assigner: ColorAssigner | None = None):
        """Initialize the service."""
        self.db = db
        self.tag_repo = TagRepository(db)
        self.color_assigner = color_assigner or HashColorAssigner()

    async def create_tag(self, name: str) -> Tag:
        """
        Create a new tag.

        Args:
            name: Tag name

        Returns:
            Created tag with a color picked from its name

        Raises:
            ValidationFailedError: Name is blank, too long or already taken
                (ignoring case)

        Business rules:
        1. Name is required
        2. Name is unique ignoring case ("Work" and "work" are the same tag)
        3. Color is never chosen by the client
        """
        normalized = self._clean_name(name)

        existing = await self.tag_repo.get_by_name(normalized)
        if existing:
            raise ValidationFailedError(f"Tag '{existing.name}' already exists", field="name")

        async with atomic(self.db):
            tag = await self.tag_repo.create(
                Tag(name=normalized, color=self.color_assigner.assign(normalized))
            )

        logger.info("Tag created", extra={"tag_id": tag.id, "tag_name": tag.name})
        return tag

    async def get_tag(self, tag_id: int) -> Tag:
        """
        Get a tag by ID.

        Raises:
            NotFoundError: Tag does not exist
        """
        tag = await self.tag_repo.get_by_id(tag_id)
        if not tag:
            raise NotFoundError("Tag", tag_id)
        return tag

    async def get_all_tags(self) -> list[Tag]:
        """Get all tags ordered by ID."""
        return await self.tag_repo.get_all()

    async def rename_tag(self, tag_id: int, new_name: str) -> Tag:
        """
        Rename a tag.

        The color follows the new name. Changing only the case of the name
        ("work" → "Work") is allowed.

        Raises:
            NotFoundError: Tag does not exist
            ValidationFailedError: New name is blank or used by another tag
        """
        tag = await self.get_tag(tag_id)
        normalized = self._clean_name(new_name)

        existing = await self.tag_repo.get_by_name(normalized)
        if existing and existing.id != tag.id:
            raise ValidationFailedError(f"Tag '{existing.name}' already exists", field="name")

        async with atomic(self.db):
            tag = await self.tag_repo.update(
                tag_id, name=normalized, color=self.color_assigner.assign(normalized)
            )

        return tag

    async def delete_tag(self, tag_id: int) -> bool:
        """
        Delete a tag.

        Every association with a task is removed as well; the tasks
        themselves stay.

        Raises:
            NotFoundError: Tag does not exist
        """
        await self.get_tag(tag_id)

        async with atomic(self.db):
            deleted = await self.tag_repo.delete(tag_id)

        logger.info("Tag deleted", extra={"tag_id": tag_id})
        return deleted

    async def get_tasks_for_tag(self, tag_id: int) -> list[Task]:
        """
        Get the tasks carrying a tag.

        Raises:
            NotFoundError: Tag does not exist
        """
        await self.get_tag(tag_id)
        return await self.tag_repo.get_tasks_for_tag(tag_id)

    # Private helpers

    def _clean_name(self, name: str) -> str:
        if not name or not name.strip():
            raise ValidationFailedError("Tag name cannot be empty", field="name")

        normalized = name.strip()
        if " " in normalized:
            # A space would split the name when the tag is typed back into a tag string
            raise ValidationFailedError("Tag name cannot contain spaces", field="name")
        check_tag_name_length(normalized)
        return normalized
