"""
Database session management and connection handling.
"""
from __future__ import annotations
import logging
from typing import AsyncGenerator, Optional, Dict, Any
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine
)
from sqlalchemy.pool import NullPool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text

from .base import Base
from .exceptions import ConnectionError


class Database:
    """Database connection and session management."""

    def __init__(
        self,
        database_url: str,
        **kwargs: Any
    ) -> None:
        """Initialize the database connection.

        Args:
            database_url: Database connection URL.
            **kwargs: Additional keyword arguments passed to create_async_engine.
        """
        self.database_url = database_url
        self.echo_sql = bool(kwargs.pop('echo_sql', False))
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._logger = logging.getLogger("secureshop.db")

        self._setup_engine(**kwargs)

    def _setup_engine(self, **kwargs: Any) -> None:
        """Set up the SQLAlchemy async engine."""
        if not self.database_url:
            raise ValueError("Database URL is required")

        engine_options: Dict[str, Any] = {
            "echo": self.echo_sql,
            "pool_pre_ping": True,
            **kwargs
        }

        # SQLite: one connection per session so short transactions serialize on
        # the database lock instead of sharing a connection.
        if "sqlite" in self.database_url:
            engine_options.update({
                "connect_args": {"check_same_thread": False, "timeout": 15},
                "poolclass": NullPool
            })
        else:
            engine_options.setdefault("pool_recycle", 300)

        self.engine = create_async_engine(self.database_url, **engine_options)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            class_=AsyncSession
        )
        self._logger.info("Database engine initialized successfully")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session wrapped in a transaction committed on exit."""
        if self.session_factory is None:
            raise ConnectionError("Database engine is not initialized")
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def create_all(self) -> None:
        """Create all tables registered on the declarative base."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            self._logger.error(f"Database health check failed: {e}")
            return False

    async def dispose(self) -> None:
        """Dispose of the engine and its connections."""
        if self.engine is not None:
            await self.engine.dispose()
            self._logger.info("Database connections closed")
