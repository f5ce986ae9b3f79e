"""Task model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now

TASK_NAME_MAX_LENGTH = 100
TASK_DESCRIPTION_MAX_LENGTH = 500


class Task(Base):
    """Task with a completion flag and a many-to-many set of tags."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(TASK_NAME_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(TASK_DESCRIPTION_MAX_LENGTH), nullable=True
    )
    done: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Set once on insert, never updated
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Tags relationship (many-to-many).
    # Membership is rewritten through TaskTagRepository, not this collection.
    tags: Mapped[list["Tag"]] = relationship(  # noqa: F821
        "Tag",
        secondary="task_tags",
        back_populates="tasks",
        order_by="Tag.id",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, name='{self.name}', done={self.done})>"
