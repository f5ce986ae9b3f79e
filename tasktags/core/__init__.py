"""Core application components."""

from .config import Settings, settings
from .database import (
    AsyncSessionLocal,
    atomic,
    configure_sqlite,
    drop_db,
    engine,
    get_db,
    init_db,
)
from .errors import (
    NotFoundError,
    ReferenceViolationError,
    ServiceError,
    StorageError,
    ValidationFailedError,
)

__all__ = [
    "settings",
    "Settings",
    "engine",
    "AsyncSessionLocal",
    "atomic",
    "configure_sqlite",
    "get_db",
    "init_db",
    "drop_db",
    "ServiceError",
    "NotFoundError",
    "ValidationFailedError",
    "ReferenceViolationError",
    "StorageError",
]
