from datetime import datetime, timezone  # For audit timestamps
from enum import Enum  # For type-safe status enumeration
from typing import List, Optional  # For optional and collection fields

from sqlalchemy import JSON, DateTime  # Column types
from sqlalchemy import Enum as SAEnum  # Database enum type
from sqlmodel import Column, Field, SQLModel, String  # For ORM and table definition


class AccountStatus(str, Enum):
    """Lifecycle status of an account.

    Transitions between these values are only legal through the account state
    machine. DELETED is terminal: accounts are never physically removed.
    """

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BLOCKED = "BLOCKED"
    DELETED = "DELETED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """Represents an Account entity, the tenant-like owner of users.

    Accounts form a tree through ``parent_id``, a weak reference by identifier.
    No live object graph is kept between parent and child; cycles are rejected
    when the reference is written.

    Attributes:
        id: Unique identifier (primary key).
        account_name: Unique, case-sensitive account name.
        parent_id: Identifier of the parent account, if any.
        status: Current lifecycle status.
        default_roles: Role identifiers given to users created without roles.
        created_by / created_at / updated_by / updated_at: Audit metadata.
    """

    __tablename__ = "accounts"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="The unique identifier for the account.",
    )
    account_name: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
        description="Unique, case-sensitive account name.",
    )
    parent_id: Optional[int] = Field(
        default=None,
        index=True,
        nullable=True,
        description="Weak reference to the parent account by identifier.",
    )
    status: AccountStatus = Field(
        default=AccountStatus.PENDING,
        sa_column=Column(
            SAEnum(AccountStatus, name="account_status"),
            nullable=False,
            default=AccountStatus.PENDING,
        ),
        description="Lifecycle status; created in PENDING.",
    )
    default_roles: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="Role identifiers assigned to new users of this account.",
    )
    created_by: Optional[str] = Field(default=None, max_length=256)
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_by: Optional[str] = Field(default=None, max_length=256)
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == AccountStatus.DELETED

    def touch(self, actor: str) -> None:
        """Stamps update metadata."""
        self.updated_by = actor
        self.updated_at = _utcnow()
