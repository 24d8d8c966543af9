"""Process-level wiring for callers that embed the conversation store."""
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy import text

from core.logger import configure_logging
from core.settings import SETTINGS
from di.container import ApplicationContainer

logger = structlog.get_logger("conversation")


@asynccontextmanager
async def lifespan(
    container: ApplicationContainer | None = None,
) -> AsyncIterator[ApplicationContainer]:
    """Initialize logging and the database, yield the container, then dispose the pool."""
    configure_logging(SETTINGS.APP)
    container = container or ApplicationContainer()

    logger.info("Initializing database connection...")
    start = time.time()
    database = container.infrastructure.database()
    try:
        await database.init()
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established", elapsed=round(time.time() - start, 2))

        yield container
    finally:
        await database.shutdown()
        container.infrastructure.database.shutdown()
        logger.info("Shutdown complete")
