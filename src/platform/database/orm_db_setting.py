"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: engine + session maker bound to the running event loop
2. Base: declarative base shared by every ORM model
3. Database: the persistence handle handed out by the DI container
"""

import asyncio
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger


class AsyncEngineManager:
    """
    Keeps one engine per event loop.

    Engines created on one loop cannot be used from another ("Future attached
    to a different loop"), which matters for test runners creating a loop per
    test.
    """

    def __init__(self, *, url: str) -> None:
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if self._engine is None or (current_loop is not None and self._loop is not current_loop):
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, recreating engine')
            Logger.base.info(f'🔗 [DB] Creating engine for event loop {id(current_loop)}')
            self._engine = self._create_engine()
            self._session_maker = None
            self._loop = current_loop
        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            Logger.base.info('🔌 [DB] Engine disposed')
        self._engine = None
        self._session_maker = None
        self._loop = None

    def _create_engine(self) -> AsyncEngine:
        pool_options: dict[str, Any] = {}
        if self._url.startswith('postgresql'):
            pool_options = {
                'pool_size': settings.DB_POOL_SIZE,
                'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
                'pool_timeout': settings.DB_POOL_TIMEOUT,
                'pool_recycle': settings.DB_POOL_RECYCLE,
                'pool_pre_ping': settings.DB_POOL_PRE_PING,
            }
        return create_async_engine(self._url, echo=False, **pool_options)


class Base(DeclarativeBase):
    pass


def as_utc(value: datetime) -> datetime:
    """Backends without timezone support (sqlite) hand back naive UTC datetimes."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class Database:
    """Persistence handle: owns the engine manager for one database URL."""

    def __init__(self, *, url: str | None = None) -> None:
        self._engine_manager = AsyncEngineManager(url=url or settings.DATABASE_URL_ASYNC)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine_manager.get_engine()

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        return self._engine_manager.get_session_maker()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Context manager for a standalone session (rolls back on exception)."""
        async with self.session_maker() as session:
            yield session

    async def create_tables(self) -> None:
        """Create tables if they don't exist (local runs; production uses alembic)."""
        # Import models so they register on Base.metadata
        import src.service.inventory.driven_adapter.model.event_model  # noqa: F401
        import src.service.payment.driven_adapter.model.payment_model  # noqa: F401
        import src.service.reservation.driven_adapter.model.reservation_model  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async def dispose(self) -> None:
        await self._engine_manager.dispose()


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate driver/ORM failures into StorageError, keeping the cause chained."""
    try:
        yield
    except SQLAlchemyError as e:
        Logger.base.error(f'❌ [DB] Storage failure while {action}: {e}')
        raise StorageError(f'Storage failure while {action}') from e
