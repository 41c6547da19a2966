"""User repository backed by SQLModel/SQLAlchemy async sessions.

Addresses are loaded eagerly with the user (``selectin``) and are written
and deleted together with it.
"""

from typing import List, Optional

from sqlalchemy import select
from structlog import get_logger

from identity_core.domain.entities.user import User
from identity_core.domain.interfaces.repositories import IUserRepository
from identity_core.domain.security.pii_masking import pii_masker
from identity_core.infrastructure.repositories.base import SQLRepository

logger = get_logger(__name__)


class UserRepository(SQLRepository, IUserRepository):
    """SQLAlchemy implementation of ``IUserRepository``."""

    async def get_by_id(self, user_id: int) -> Optional[User]:
        async with self._translate_errors("get_by_id", user_id=user_id):
            result = await self.db_session.execute(select(User).where(User.id == user_id))
            user = result.scalars().first()
        logger.debug(
            "User lookup by ID completed",
            user_id=user_id,
            found=user is not None,
            operation="get_by_id",
        )
        return user

    async def get_by_username(self, username: str) -> Optional[User]:
        async with self._translate_errors("get_by_username"):
            result = await self.db_session.execute(select(User).where(User.username == username))
            user = result.scalars().first()
        logger.debug(
            "User lookup by username completed",
            username=pii_masker.mask_username(username),
            found=user is not None,
            operation="get_by_username",
        )
        return user

    async def save(self, user: User) -> User:
        async with self._translate_errors("save", user_id=user.id):
            self.db_session.add(user)
            await self.db_session.flush()
        logger.debug(
            "User staged",
            user_id=user.id,
            username=pii_masker.mask_username(user.username),
            operation="save",
        )
        return user

    async def list_by_account(self, account_id: int) -> List[User]:
        async with self._translate_errors("list_by_account", account_id=account_id):
            result = await self.db_session.execute(
                select(User).where(User.account_id == account_id).order_by(User.id)
            )
            return list(result.scalars().all())
