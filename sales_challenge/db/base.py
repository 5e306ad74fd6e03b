"""Declarative base, async engine and session factory.

The Alembic revisions own the production schema. ``create_all`` only runs
for SQLite (tests, local runs) or in debug mode.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sales_challenge.core.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for ``url``. SQLite connections enforce foreign keys."""
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    # Populate metadata before create_all
    import sales_challenge.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(url: str | None = None) -> None:
    """Initialize the shared engine and session factory.

    Args:
        url: Overrides ``DATABASE_URL`` (tests pass a SQLite file)
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    settings = get_settings()
    db_url = url or settings.database_url

    _engine = create_engine(db_url, echo=settings.debug)
    _session_factory = make_session_factory(_engine)

    if settings.debug or _engine.dialect.name == "sqlite":
        await create_tables(_engine)


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the configured session factory.

    Raises RuntimeError if init_db() has not been called.
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
