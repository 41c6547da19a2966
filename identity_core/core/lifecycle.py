"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring proper
initialization and cleanup of application resources.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from identity_core.core.config.settings import settings
from identity_core.core.logging import logger
from identity_core.infrastructure.database.async_db import (
    create_async_db_and_tables,
    dispose_engine,
)


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Creates tables when configured to and releases the engine on shutdown."""
        # Startup
        if settings.CREATE_TABLES_ON_STARTUP:
            await create_async_db_and_tables()
        logger.info(
            "application_startup",
            env=settings.APP_ENV,
            version=settings.VERSION,
            policy_rules=len(app.state.components.rule_set),
        )

        yield

        # Shutdown
        await dispose_engine()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
