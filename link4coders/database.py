"""Async engine and sessions shared by request handlers and background refreshes."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from link4coders.config import Settings, settings
from link4coders.models.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(config: Settings) -> AsyncEngine:
    return create_async_engine(config.database_url, pool_pre_ping=True)


def configure_db(config: Settings) -> AsyncEngine:
    """Bind the module-level engine and session factory to ``config``."""
    global _engine, _session_factory
    _engine = create_engine(config)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        return configure_db(settings)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        configure_db(settings)
    assert _session_factory is not None
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """A session that lives outside any request, e.g. for background work."""
    async with get_session_factory()() as session:
        yield session


async def get_db() -> AsyncIterator[AsyncSession]:
    async with session_scope() as session:
        yield session


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
