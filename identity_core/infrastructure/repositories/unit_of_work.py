"""Unit of work over a single async session."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from identity_core.core.exceptions import PersistenceError
from identity_core.domain.interfaces.repositories import IUnitOfWork

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork(IUnitOfWork):
    """Commits or rolls back everything the request's repositories staged."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def commit(self) -> None:
        try:
            await self.db_session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError("Transaction could not be committed") from e

    async def rollback(self) -> None:
        await self.db_session.rollback()
        logger.debug("Transaction rolled back")
