"""Async SQLAlchemy engine and session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class Database:
    """Owns one engine and its session factory.

    Constructed once per process (application lifespan or test fixture) and
    handed to request handlers through ``app.state.db``.
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs.setdefault("pool_size", 20)
            engine_kwargs.setdefault("max_overflow", 10)
            engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine: AsyncEngine = create_async_engine(url, echo=False, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def dispose(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    db: Database | None = getattr(request.app.state, "db", None)
    if db is None:
        msg = "Database not initialized on app.state"
        raise RuntimeError(msg)
    async with db.session_factory() as session:
        yield session
