"""Database Session Manager: engine, per-request sessions, readiness ping.

Invariants:
    - A session that exits with an exception is rolled back before it closes
    - SQLAlchemy failures leave the session as DatabaseError (core/errors.py);
      MarketplaceError raised inside the block passes through unchanged
    - SQLite URLs get no pool sizing (aiosqlite uses a static pool)

Design Decisions:
    - Module-level db_manager set by the FastAPI lifespan; dependencies read it
      at call time so tests can swap it
    - expire_on_commit=False: rows stay readable after repositories commit
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from app.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIError subclasses
_FAILURE_KINDS = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Database connection lost", "execute"),
    (DBAPIError, "Database driver rejected the statement", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for kind, message, operation in _FAILURE_KINDS:
        if isinstance(exc, kind):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        options = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=1800,
            )
        self.engine = create_async_engine(database_url, **options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as db:
            try:
                yield db
            except SQLAlchemyError as e:
                await db.rollback()
                error = _to_database_error(e)
                logger.error(
                    f"{error.message}: {type(e).__name__}",
                    extra={"error_code": error.code},
                )
                raise error from e
            except Exception:
                await db.rollback()
                raise

    async def ping(self) -> bool:
        """SELECT 1 through a fresh session; False on any database failure."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, OSError) as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
