"""SQLAlchemy database configuration and connection management.

This module is responsible for:
- Engine creation and configuration
- Session factory creation
- Session and transaction handling
- Schema creation for the scrobble queue tables
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from audioscrobbler.config import get_logger, settings

logger = get_logger(__name__).bind(service="database")


def _ensure_sqlite_directory(db_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    prefix = "sqlite+aiosqlite:///"
    if not db_url.startswith(prefix):
        return
    db_path = db_url[len(prefix):].split("?", 1)[0]
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(connection_string: str | None = None) -> AsyncEngine:
    """Create async SQLAlchemy engine with SQLite-friendly settings."""
    db_url = connection_string or settings.database.url

    connect_args = {}
    if db_url.startswith("sqlite"):
        _ensure_sqlite_directory(db_url)
        connect_args = {
            "check_same_thread": False,
            "timeout": 30.0,
        }

    engine = create_async_engine(
        db_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=settings.database.echo,
    )

    if db_url.startswith("sqlite"):

        @event.listens_for(engine.sync_engine, "connect")  # type: ignore
        def _set_sqlite_pragma(dbapi_connection, _):  # type: ignore # pragma: no cover
            """Set SQLite PRAGMAs on connection creation."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA busy_timeout = 30000")
            cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute("PRAGMA synchronous = NORMAL")
            cursor.close()

    logger.debug("Created database engine", url=db_url)
    return engine


# Global engine singleton
_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global database engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def create_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """Create an async session factory for the given engine.

    Args:
        engine: Optional engine (uses global engine if None)

    Returns:
        Async session factory for creating properly configured sessions
    """
    return async_sessionmaker(
        bind=engine or get_engine(),
        expire_on_commit=False,
        autoflush=True,
        autocommit=False,
    )


@asynccontextmanager
async def get_session(
    session_factory: async_sessionmaker | None = None,
    rollback: bool = True,
) -> AsyncGenerator[AsyncSession]:
    """Get an asynchronous database session with automatic transaction management.

    The transaction is committed when the context manager exits without an
    exception.

    Args:
        session_factory: Factory to use (global one when None)
        rollback: If True (default), automatically rolls back on exception.

    Yields:
        AsyncSession: Managed database session
    """
    factory = session_factory or create_session_factory()
    session = factory()
    try:
        yield session
        await session.commit()
    except Exception:
        if rollback:
            await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from audioscrobbler.infrastructure.persistence.database.db_models import (
        ScrobblerDBBase,
    )

    target = engine or get_engine()
    async with target.begin() as conn:
        await conn.run_sync(ScrobblerDBBase.metadata.create_all)
    logger.debug("Database schema ready")
