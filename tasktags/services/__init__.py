"""Service layer with business logic."""

from ..core.errors import (
    NotFoundError,
    ReferenceViolationError,
    ServiceError,
    StorageError,
    ValidationFailedError,
)
from .associations import AssociationReplacer
from .colors import (
    DEFAULT_PALETTE,
    ColorAssigner,
    HashColorAssigner,
    RandomColorAssigner,
    build_color_assigner,
)
from .tag import TagService
from .tag_reconciler import TagReconciler, parse_tag_string
from .task import TaskService

__all__ = [
    "TaskService",
    "TagService",
    "TagReconciler",
    "AssociationReplacer",
    "parse_tag_string",
    "ColorAssigner",
    "HashColorAssigner",
    "RandomColorAssigner",
    "DEFAULT_PALETTE",
    "build_color_assigner",
    "ServiceError",
    "NotFoundError",
    "ValidationFailedError",
    "ReferenceViolationError",
    "StorageError",
]
