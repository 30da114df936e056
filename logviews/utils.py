"""
Utility functions.
"""

import logging
import os
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from dotenv import load_dotenv
from rich.logging import RichHandler
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from logviews.config import DatabaseConfig, Settings
from logviews.errors import UninitializedResourceException

logger = logging.getLogger(__name__)


def setup_logging(loglevel: str) -> None:
    """
    Setup basic logging.
    """
    level = getattr(logging, loglevel.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {loglevel}")

    logformat = "[%(asctime)s] %(levelname)s: %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=logformat,
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Return a cached settings object.
    """
    dotenv_file = os.environ.get("DOTENV_FILE", ".env")
    load_dotenv(dotenv_file)
    return Settings()


class DatabaseSessionManager:
    """
    Cache store session manager
    """

    def __init__(self):
        self._reader_engine: Optional[AsyncEngine] = None
        self._writer_engine: Optional[AsyncEngine] = None
        self._reader_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._writer_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def reader_sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._reader_sessionmaker is None:
            raise UninitializedResourceException(
                "DatabaseSessionManager is not initialized",
            )
        return self._reader_sessionmaker

    @property
    def writer_sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._writer_sessionmaker is None:
            raise UninitializedResourceException(
                "DatabaseSessionManager is not initialized",
            )
        return self._writer_sessionmaker

    def init_db(self, settings: Settings):
        """
        Initialize the database engines
        """
        self._writer_engine, self._writer_sessionmaker = self.create_engine_and_session(
            settings.writer_db,
            settings.cache_schema,
        )
        if settings.reader_db:
            self._reader_engine, self._reader_sessionmaker = (
                self.create_engine_and_session(
                    settings.reader_db,
                    settings.cache_schema,
                )
            )
        else:
            self._reader_engine, self._reader_sessionmaker = (
                self._writer_engine,
                self._writer_sessionmaker,
            )

    @classmethod
    def create_engine_and_session(
        cls,
        database_config: DatabaseConfig,
        cache_schema: Optional[str] = None,
    ) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
        engine = create_async_engine(
            database_config.uri,
            echo=database_config.echo,
            pool_pre_ping=database_config.pool_pre_ping,
            pool_size=database_config.pool_size,
            max_overflow=database_config.max_overflow,
            pool_timeout=database_config.pool_timeout,
            pool_recycle=database_config.pool_recycle,
            execution_options={"schema_translate_map": {None: cache_schema}},
        )
        async_session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
        return engine, async_session_factory

    async def close(self):
        """
        Dispose of the database engines
        """
        if self._reader_engine is None and self._writer_engine is None:
            raise UninitializedResourceException(
                "DatabaseSessionManager is not initialized",
            )
        if self._reader_engine and self._reader_engine is not self._writer_engine:
            await self._reader_engine.dispose()
        if self._writer_engine:
            await self._writer_engine.dispose()


@lru_cache(maxsize=None)
def get_session_manager() -> DatabaseSessionManager:
    """
    Get session manager
    """
    session_manager = DatabaseSessionManager()
    session_manager.init_db(get_settings())
    return session_manager


@asynccontextmanager
async def session_context(readonly: bool = False) -> AsyncIterator[AsyncSession]:
    """
    Async cache store session, rolled back if the body raises.
    """
    session_manager = get_session_manager()
    session_maker = (
        session_manager.reader_sessionmaker
        if readonly
        else session_manager.writer_sessionmaker
    )
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
