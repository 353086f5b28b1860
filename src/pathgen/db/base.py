"""Database connection and session management."""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from pathgen.config import get_settings

Base = declarative_base()

# Global engine and sessionmaker
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(db_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine, enabling FK enforcement on SQLite."""
    settings = get_settings()

    engine_args: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": echo,
    }

    # SQLite (used in tests) doesn't support pool_size/max_overflow
    if not db_url.startswith("sqlite"):
        engine_args["pool_size"] = settings.db_pool_size
        engine_args["max_overflow"] = settings.db_max_overflow

    new_engine = create_async_engine(db_url, **engine_args)
    if db_url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


async def init_db() -> None:
    """Initialize database connection."""
    global engine, AsyncSessionLocal

    settings = get_settings()

    engine = build_engine(settings.db_url, echo=settings.debug)

    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # SQLite is used for tests and local runs; Postgres goes through Alembic
    if settings.db_url.startswith("sqlite"):
        import pathgen.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connection."""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        engine = None
        AsyncSessionLocal = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    if AsyncSessionLocal is None:
        await init_db()

    assert AsyncSessionLocal is not None

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
