from datetime import datetime, timezone  # For timestamp fields
from typing import Optional  # For optional fields

from sqlalchemy import DateTime  # Explicit DateTime type
from sqlmodel import Column, Field, SQLModel  # For ORM and table definition

from identity_core.domain.value_objects.policy import PasswordHistoryEntry


class PasswordHistory(SQLModel, table=True):
    """One row per credential ever set for a user.

    The most recent rows feed the history-reuse and expiry checks of the
    password policy.
    """

    __tablename__ = "password_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    password_hash: str = Field(max_length=255, nullable=False)
    changed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )

    def to_entry(self) -> PasswordHistoryEntry:
        return PasswordHistoryEntry(password_hash=self.password_hash, changed_at=self.changed_at)
