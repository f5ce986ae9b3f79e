"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar for the Generic class - lets the repository work with any model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with CRUD operations.

    Repositories only flush; committing is the job of whoever owns the session.

    Example:
        tag_repo = BaseRepository[Tag](Tag, db_session)
        tag = await tag_repo.get_by_id(1)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: SQLAlchemy model class (Task, Tag)
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Insert a new row.

        Returns:
            The same object with its ID (and defaults) populated from the DB
        """
        self.db.add(obj)
        await self.db.flush()  # send to the DB, no commit
        await self.db.refresh(obj)  # pull generated ID and timestamps
        return obj

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get an object by primary key.

        SQL equivalent:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self) -> list[ModelType]:
        """
        Get every row ordered by ID.

        SQL equivalent:
            SELECT * FROM table ORDER BY id;
        """
        result = await self.db.execute(select(self.model).order_by(self.model.id))
        return list(result.scalars().all())

    async def update(self, id: int, **kwargs: Any) -> ModelType | None:
        """
        Update the given fields of a row.

        Returns:
            Updated object or None if not found

        Example:
            task = await repo.update(1, name="New name", done=True)
        """
        obj = await self.get_by_id(id)
        if not obj:
            return None

        # Only touch the fields that were passed
        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: int) -> bool:
        """
        Delete a row by ID.

        Returns:
            True if deleted, False if not found

        SQL equivalent:
            DELETE FROM table WHERE id={id};
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def exists(self, id: int) -> bool:
        """
        SQL equivalent:
            SELECT EXISTS(SELECT 1 FROM table WHERE id={id});
        """
        result = await self.db.execute(select(exists().where(self.model.id == id)))
        return bool(result.scalar())

    async def count(self) -> int:
        """
        SQL equivalent:
            SELECT COUNT(*) FROM table;
        """
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
