"""SQLAlchemy models for Task Tags."""

from .base import Base, utc_now
from .tag import DEFAULT_TAG_COLOR, TAG_NAME_MAX_LENGTH, Tag, tag_name_key
from .task import TASK_DESCRIPTION_MAX_LENGTH, TASK_NAME_MAX_LENGTH, Task
from .task_tag import task_tags

__all__ = [
    "Base",
    "utc_now",
    "Tag",
    "Task",
    "task_tags",
    "tag_name_key",
    "DEFAULT_TAG_COLOR",
    "TAG_NAME_MAX_LENGTH",
    "TASK_NAME_MAX_LENGTH",
    "TASK_DESCRIPTION_MAX_LENGTH",
]
