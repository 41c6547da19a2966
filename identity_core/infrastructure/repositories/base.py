"""Shared plumbing for the SQLModel repositories."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from identity_core.core.exceptions import PersistenceError

logger = get_logger(__name__)


class SQLRepository:
    """Base class holding the request session.

    Repositories stage changes with ``flush``; committing belongs to the unit
    of work.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    @asynccontextmanager
    async def _translate_errors(self, operation: str, **context) -> AsyncIterator[None]:
        """Re-raises driver errors as ``PersistenceError``."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(
                "Database operation failed",
                repository=type(self).__name__,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            raise PersistenceError(f"Database operation '{operation}' failed") from e
