"""Infrastructure resources: the relational store.

This module is part of the infra layer and must not import from application features.
"""
from typing import Any, Dict, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = structlog.get_logger("infra.database")


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        engine_options: Optional[Dict[str, Any]] = None,
    ):
        self.database_url = database_url
        self.echo = echo
        self.engine_options = engine_options or {}
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def init(self):
        """Initialize database connection."""
        url = make_url(self.database_url)
        is_sqlite = url.get_backend_name() == "sqlite"
        options: Dict[str, Any] = {"pool_pre_ping": True}
        if not is_sqlite:
            options["pool_recycle"] = 3600
        options.update(self.engine_options)

        self.engine = create_async_engine(self.database_url, echo=self.echo, **options)
        if is_sqlite:
            # SQLite only enforces foreign keys when asked to, per connection
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine initialized", backend=url.get_backend_name())
        return self

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def create_schema(self, base: type[DeclarativeBase]) -> None:
        """Create all tables known to ``base``; meant for tests and local bootstrap."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self.engine.begin() as conn:
            await conn.run_sync(base.metadata.create_all)

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database engine disposed")


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
