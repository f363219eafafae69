"""
Database base configuration for SQLAlchemy models.

This module uses SQLAlchemy 2.0 style with DeclarativeBase. Every request
handler works against an AsyncSession yielded by get_db; there is no sync
engine because nothing in the service runs outside the event loop.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# Build the async URL by string-prefix replacement on the configured URL.
# Plain sqlite:// and postgresql:// URLs are accepted so the same value can be
# shared with alembic, which runs on the sync drivers.
_SYNC_PREFIX_MAP = {
    "postgresql+psycopg2://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(database_url: str) -> str:
    """
    Map a sync database URL onto its async driver equivalent.

    URLs that already name an async driver are returned unchanged.

    Raises:
        ValueError: If the URL prefix has no async driver mapping
    """
    if "+aiosqlite://" in database_url or "+asyncpg://" in database_url:
        return database_url
    for sync_prefix, async_prefix in _SYNC_PREFIX_MAP.items():
        if database_url.startswith(sync_prefix):
            return async_prefix + database_url[len(sync_prefix) :]
    raise ValueError(
        f"No async driver mapping for DATABASE_URL prefix. "
        f"Supported prefixes: {list(_SYNC_PREFIX_MAP.keys())}"
    )


def enable_sqlite_foreign_keys(engine) -> None:
    """
    Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores ON DELETE CASCADE / SET NULL unless the pragma is set on
    each connection, and the result/answer lifecycle depends on both rules.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


ASYNC_DATABASE_URL: str = to_async_url(settings.DATABASE_URL)

async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=settings.DB_ECHO)
enable_sqlite_foreign_keys(async_engine)

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """
    SQLAlchemy 2.0 declarative base class with type annotation support.
    """

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async dependency function to get database session.

    Yields an async database session and ensures proper cleanup. Closing the
    session rolls back whatever transaction is still open, which is what
    leaves no partial writes behind when a request is cancelled mid-way.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
