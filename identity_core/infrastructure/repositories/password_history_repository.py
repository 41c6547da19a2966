"""Password history repository."""

from datetime import datetime
from typing import List

from sqlalchemy import select

from identity_core.domain.entities.password_history import PasswordHistory
from identity_core.domain.interfaces.repositories import IPasswordHistoryRepository
from identity_core.domain.value_objects.policy import PasswordHistoryEntry
from identity_core.infrastructure.repositories.base import SQLRepository


class PasswordHistoryRepository(SQLRepository, IPasswordHistoryRepository):
    async def recent(self, user_id: int, limit: int) -> List[PasswordHistoryEntry]:
        if limit <= 0:
            return []
        async with self._translate_errors("recent", user_id=user_id):
            result = await self.db_session.execute(
                select(PasswordHistory)
                .where(PasswordHistory.user_id == user_id)
                .order_by(PasswordHistory.changed_at.desc(), PasswordHistory.id.desc())
                .limit(limit)
            )
            return [row.to_entry() for row in result.scalars().all()]

    async def append(self, user_id: int, password_hash: str, changed_at: datetime) -> None:
        async with self._translate_errors("append", user_id=user_id):
            self.db_session.add(
                PasswordHistory(user_id=user_id, password_hash=password_hash, changed_at=changed_at)
            )
            await self.db_session.flush()
