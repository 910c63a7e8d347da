"""
Database Connection Module for Uptime Monitor

Manages the async engine, session factory and connectivity checks
using SQLAlchemy's async engine and session maker.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.exc import SQLAlchemyError

from config.settings import DatabaseSettings, DatabaseType
from database.models import Base
from exceptions import DatabaseConnectionError, DatabaseQueryError
from utils.logger import get_logger


logger = get_logger(__name__)


class DatabaseManager:
    """
    Database Manager Class

    Owns the async engine and hands out transactional sessions.

    Attributes:
        engine: SQLAlchemy async engine
        session_factory: Async session maker
        is_connected: Connection status flag
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None) -> None:
        """
        Initialize database manager.

        Args:
            settings: Database section; loaded from the environment if omitted
        """
        self._settings = settings or DatabaseSettings()
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self.is_connected: bool = False
        self._lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return self._settings.url

    async def connect(self) -> None:
        """
        Establish database connection.

        Creates the async engine and session factory, then verifies
        connectivity with a trivial query.

        Raises:
            DatabaseConnectionError: If connection fails
        """
        async with self._lock:
            if self.is_connected:
                logger.debug("Database already connected")
                return

            try:
                logger.info(f"Connecting to database: {self._mask_password(self.url)}")

                self.engine = create_async_engine(self.url, **self._get_engine_kwargs())
                self.session_factory = async_sessionmaker(
                    bind=self.engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False
                )

                self._setup_event_listeners()
                await self._test_connection()

                self.is_connected = True
                logger.info("Database connection established successfully")

            except (SQLAlchemyError, OSError) as e:
                error_msg = f"Failed to connect to database: {e}"
                logger.error(error_msg)
                if self.engine is not None:
                    await self.engine.dispose()
                    self.engine = None
                self.session_factory = None
                raise DatabaseConnectionError(
                    message=error_msg,
                    host=self._settings.host if self._settings.type == DatabaseType.POSTGRESQL else None,
                    port=self._settings.port if self._settings.type == DatabaseType.POSTGRESQL else None,
                    database=self._settings.name,
                    cause=e
                ) from e

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        """
        Get engine configuration kwargs based on settings.

        Returns:
            Dictionary of engine configuration options
        """
        kwargs: Dict[str, Any] = {"echo": self._settings.echo}

        if self._settings.type == DatabaseType.SQLITE:
            if self._settings.is_memory:
                # a single shared connection keeps the in-memory database alive
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            else:
                kwargs["poolclass"] = NullPool
        else:
            kwargs["pool_size"] = self._settings.pool_size
            kwargs["max_overflow"] = self._settings.max_overflow
            kwargs["pool_timeout"] = self._settings.pool_timeout
            kwargs["pool_recycle"] = self._settings.pool_recycle
            kwargs["pool_pre_ping"] = True

        return kwargs

    async def _test_connection(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def _setup_event_listeners(self) -> None:
        """Set up SQLAlchemy event listeners for connection tracing."""

        @event.listens_for(self.engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            logger.debug("New database connection established")

        if self._settings.type == DatabaseType.SQLITE:
            @event.listens_for(self.engine.sync_engine, "connect")
            def enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    async def ensure_connected(self) -> None:
        """
        Connect if needed and verify the store answers.

        Called at the start of every batch; a failure here is the one
        error that aborts a whole run.

        Raises:
            DatabaseConnectionError: If the store is unreachable
        """
        if not self.is_connected:
            await self.connect()
            return

        try:
            await self._test_connection()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database connectivity check failed: {e}")
            raise DatabaseConnectionError(
                message=f"Database connectivity check failed: {e}",
                database=self._settings.name,
                cause=e
            ) from e

    async def create_tables(self) -> None:
        """Create all database tables."""
        if not self.is_connected:
            await self.connect()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    async def close(self) -> None:
        """Dispose of the engine and clean up resources."""
        async with self._lock:
            if self.engine is not None:
                await self.engine.dispose()
                logger.info("Database connections closed")
            self.engine = None
            self.session_factory = None
            self.is_connected = False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions.

        Provides a session that is automatically committed on success
        or rolled back on failure.

        Yields:
            AsyncSession: Database session

        Raises:
            DatabaseConnectionError: If not connected
            DatabaseQueryError: If a statement fails
        """
        if not self.is_connected or not self.session_factory:
            raise DatabaseConnectionError("Database not connected")

        session = self.session_factory()

        try:
            yield session
            await session.commit()

        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise DatabaseQueryError(message=str(e), cause=e) from e

        except Exception:
            await session.rollback()
            raise

        finally:
            await session.close()

    @staticmethod
    def _mask_password(url: str) -> str:
        """
        Mask password in database URL for logging.

        Args:
            url: Database URL

        Returns:
            Masked URL
        """
        if "://" not in url:
            return url

        protocol, rest = url.split("://", 1)
        if "@" not in rest:
            return url

        credentials, host_part = rest.split("@", 1)
        if ":" in credentials:
            user, _ = credentials.split(":", 1)
            return f"{protocol}://{user}:****@{host_part}"

        return url
