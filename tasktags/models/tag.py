"""Tag model."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Base, utc_now

TAG_NAME_MAX_LENGTH = 50
DEFAULT_TAG_COLOR = "#cccccc"


def tag_name_key(name: str) -> str:
    """Case-insensitive identity of a tag name."""
    return name.lower()


class Tag(Base):
    """Free-form label attached to tasks; names are unique ignoring case."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(TAG_NAME_MAX_LENGTH), nullable=False)
    # Lower-cased copy of name, maintained by the validator below
    name_key: Mapped[str] = mapped_column(
        String(TAG_NAME_MAX_LENGTH), unique=True, index=True, nullable=False
    )
    color: Mapped[str] = mapped_column(String(7), default=DEFAULT_TAG_COLOR, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship(  # noqa: F821
        "Task", secondary="task_tags", back_populates="tags", passive_deletes=True
    )

    @validates("name")
    def _sync_name_key(self, key: str, name: str) -> str:
        self.name_key = tag_name_key(name)
        return name

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', color='{self.color}')>"
