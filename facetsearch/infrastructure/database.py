"""Database configuration and session management.

Provides the async SQLAlchemy engine and session factory for the catalog
database. SQLite URLs (the default) run through aiosqlite; an in-memory
SQLite database keeps one shared connection so every session sees the
same data.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from facetsearch.infrastructure.config import settings


def build_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create an async engine for a database URL.

    Args:
        database_url: SQLAlchemy URL, the configured one by default.
        echo: Log SQL statements, follows ``settings.debug`` by default.

    Returns:
        AsyncEngine instance.
    """
    url = make_url(database_url or settings.database_url)
    options: dict = {"echo": settings.debug if echo is None else echo}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True

    return create_async_engine(url, **options)


# Create async engine
engine = build_engine()

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create database tables if they don't exist.

    Args:
        bind: Engine to create the tables on, the module engine by default.
    """
    # Models register their tables on import
    from facetsearch.infrastructure import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
