"""Database connection, session management and the unit-of-work scope."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from .config import settings
from .errors import ReferenceViolationError, StorageError
from .logging import get_logger

logger = get_logger(__name__)

# SQLSTATE class 23 code for foreign_key_violation (PostgreSQL)
FOREIGN_KEY_VIOLATION = "23503"


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite behave like the other backends.

    - FK enforcement: SQLite ignores ON DELETE CASCADE unless the pragma is
      set per connection.
    - Transactions: the driver's own BEGIN handling is turned off and BEGIN
      is emitted explicitly, otherwise SAVEPOINT (used by ``atomic()``)
      opens and RELEASE commits a transaction of its own.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    """True if the database rejected a row pointing at a missing parent."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == FOREIGN_KEY_VIOLATION
    return "FOREIGN KEY constraint failed" in str(orig)


# For SQLite, use StaticPool to avoid greenlet issues
# For PostgreSQL, use NullPool
if "sqlite" in settings.DATABASE_URL:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(engine)
else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=NullPool,
    )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Request-scoped session: commit on success, rollback on error.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a group of writes as one unit.

    The block runs inside a SAVEPOINT. Everything written inside it is
    flushed together on success; any exception rolls back to the savepoint,
    so the unit leaves no partial state while earlier uncommitted work in
    the same session is kept. Scopes nest.

    Database errors are translated:
    - foreign key violation → ReferenceViolationError (retrying cannot help)
    - anything else → the retryable StorageError
    Every other exception propagates unchanged.

    Commit is left to the owner of the session (``get_db`` in the API).

    Usage:
        async with atomic(self.db):
            tags = await reconciler.resolve(names)
            await replacer.replace(task_id, [t.id for t in tags])
    """
    try:
        async with session.begin_nested():
            yield session
            await session.flush()
    except IntegrityError as exc:
        if not is_foreign_key_violation(exc):
            _log_rollback(exc)
            raise StorageError("Storage is temporarily unavailable, retry the request") from exc
        logger.warning("Unit of work rolled back: dangling reference")
        raise ReferenceViolationError("Write refers to a record that does not exist") from exc
    except SQLAlchemyError as exc:
        _log_rollback(exc)
        raise StorageError("Storage is temporarily unavailable, retry the request") from exc


def _log_rollback(exc: SQLAlchemyError) -> None:
    logger.error(
        "Unit of work rolled back",
        extra={"error_type": type(exc).__name__},
        exc_info=exc,
    )


async def init_db():
    """Initialize database (create all tables)."""
    from ..models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    """Drop all tables (use with caution!)."""
    from ..models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
