"""Account repository backed by SQLModel/SQLAlchemy async sessions."""

from typing import Optional

from sqlalchemy import select
from structlog import get_logger

from identity_core.domain.entities.account import Account
from identity_core.domain.interfaces.repositories import IAccountRepository
from identity_core.infrastructure.repositories.base import SQLRepository

logger = get_logger(__name__)


class AccountRepository(SQLRepository, IAccountRepository):
    """SQLAlchemy implementation of ``IAccountRepository``."""

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        async with self._translate_errors("get_by_id", account_id=account_id):
            result = await self.db_session.execute(select(Account).where(Account.id == account_id))
            account = result.scalars().first()
        logger.debug(
            "Account lookup by ID completed",
            account_id=account_id,
            found=account is not None,
            operation="get_by_id",
        )
        return account

    async def get_by_name(self, account_name: str) -> Optional[Account]:
        """Exact, case-sensitive lookup."""
        async with self._translate_errors("get_by_name"):
            result = await self.db_session.execute(
                select(Account).where(Account.account_name == account_name)
            )
            return result.scalars().first()

    async def save(self, account: Account) -> Account:
        async with self._translate_errors("save", account_id=account.id):
            self.db_session.add(account)
            await self.db_session.flush()
        logger.debug("Account staged", account_id=account.id, status=account.status.value)
        return account
