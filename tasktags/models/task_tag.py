"""Task-Tag junction table."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Table

from .base import Base, utc_now

# Many-to-many junction table for tasks and tags.
# The composite primary key rules out a duplicate (task_id, tag_id) pair;
# a row cannot outlive either endpoint.
task_tags = Table(
    "task_tags",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=utc_now, nullable=False),
)
