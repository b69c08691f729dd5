"""Database engine and session management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from portfolio_api.config.settings import DatabaseConfig

# Import models so they are attached to Base.metadata before table creation
from portfolio_api.models import Base
from portfolio_api.models import view  # noqa: F401

logger = logging.getLogger(__name__)


def _create_engine(config: DatabaseConfig, *, debug: bool = False) -> AsyncEngine:
    """Create an async engine with environment-appropriate pooling."""

    url = config.async_url
    engine_options: dict[str, Any] = {
        "echo": debug,
        "future": True,
        "pool_pre_ping": True,
    }

    if config.serverless or debug or url.startswith("sqlite"):
        # Disable pooling when working with serverless databases (or in debug).
        engine_options["poolclass"] = NullPool
    else:
        engine_options["pool_timeout"] = config.pool_timeout

    if url.startswith("postgresql+asyncpg"):
        engine_options["connect_args"] = {
            "timeout": config.command_timeout,
            "command_timeout": config.command_timeout,
        }

    return create_async_engine(url, **engine_options)


class Database:
    """Owns the engine and session factory shared by every request."""

    def __init__(self, config: DatabaseConfig, *, debug: bool = False) -> None:
        self.engine: AsyncEngine = _create_engine(config, debug=debug)
        self.session_factory = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """Async context manager that yields a SQLAlchemy session."""

        async with self.session_factory() as session:
            yield session

    async def init_models(self) -> None:
        """Create database tables if they do not exist."""

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Ensured database tables in default schema.")

    async def dispose(self) -> None:
        """Dispose of the engine and release pooled connections."""

        await self.engine.dispose()


__all__ = ["Database"]
