"""
Database engine and unit-of-work sessions for the note store.

The engine and its session factory are created lazily from
``Settings.database_url`` and cached at module level. Tests swap in an
in-memory engine by assigning ``_engine`` and clearing ``_session_factory``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from auranotes.core.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _prepare_sqlite_path(db_url: str) -> None:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def get_engine(url: str | None = None) -> AsyncEngine:
    """Engine for ``url`` (or the configured database), built once per process."""
    global _engine
    if _engine is None:
        db_url = url or get_settings().database_url
        _prepare_sqlite_path(db_url)
        _engine = create_async_engine(db_url, echo=False)
    return _engine


def _sessions() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Notes are read after commit by the mirror, keep attributes loaded
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """One unit of work: committed when the block exits cleanly, else rolled back."""
    async with _sessions()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the ``notes`` table if it does not exist yet."""
    from auranotes.services.storage import models_db  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the cached engine on shutdown."""
    engine = _engine
    reset_engine()
    if engine is not None:
        await engine.dispose()


def reset_engine() -> None:
    """Forget the cached engine and session factory without disposing them."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
