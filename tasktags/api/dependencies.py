"""
Dependencies for FastAPI endpoints.

Dependency Injection: FastAPI builds the session, the color assigner and the
services for each request, so endpoints only declare what they need:

    async def create_task(
        data: TaskCreate,
        service: TaskService = Depends(get_task_service),
    ):
        ...

Tests swap ``get_db`` (or ``get_color_assigner``) via
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..services import ColorAssigner, TagService, TaskService, build_color_assigner

# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


@lru_cache
def get_color_assigner() -> ColorAssigner:
    """
    The tag color strategy configured by TAG_COLOR_STRATEGY / TAG_PALETTE.

    Built once per process; the palette is immutable.
    """
    return build_color_assigner(settings)


async def get_task_service(
    db: AsyncSession = Depends(get_db),
    color_assigner: ColorAssigner = Depends(get_color_assigner),
) -> TaskService:
    """
    Dependency for TaskService.

    Dependency chain:
        get_task_service depends on get_db and get_color_assigner
        → FastAPI resolves both
        → and passes them into TaskService
    """
    return TaskService(db, color_assigner)


async def get_tag_service(
    db: AsyncSession = Depends(get_db),
    color_assigner: ColorAssigner = Depends(get_color_assigner),
) -> TagService:
    """Dependency for TagService."""
    return TagService(db, color_assigner)


__all__ = ["get_db", "get_color_assigner", "get_task_service", "get_tag_service"]
