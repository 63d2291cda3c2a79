from typing import Any

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    async_sessionmaker,
    AsyncAttrs,
)
from sqlalchemy.orm import DeclarativeBase

from credgate.core.config import settings

ASYNC_SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def engine_options(url: str) -> dict[str, Any]:
    """
    Engine keyword arguments for a database URL.

    SQLite uses a single-connection pool without sizing options; server
    databases get a sized, pre-pinged, recycled pool.

    Args:
        url (str): SQLAlchemy async database URL.

    Returns:
        dict[str, Any]: Keyword arguments for ``create_async_engine``.
    """
    options: dict[str, Any] = {"echo": settings.DEBUG}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_size=20,
        max_overflow=30,
        pool_pre_ping=True,
        pool_recycle=3600,
    )
    return options


async_engine: AsyncEngine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    **engine_options(ASYNC_SQLALCHEMY_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    autoflush=False,
    expire_on_commit=False,
    autobegin=True,
)


class Base(AsyncAttrs, DeclarativeBase):
    pass


async def init_db() -> None:
    """
    Create every table registered on ``Base.metadata``.

    Used by ``manage.py initdb`` and local runs; deployments use Alembic.
    """
    # Register models on the metadata
    import credgate.core.db.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Dispose the engine's connection pool."""
    await async_engine.dispose()
