from datetime import datetime, timezone  # For timestamp fields
from enum import Enum  # For type-safe status enumeration
from typing import List, Optional  # For optional and collection fields

from sqlalchemy import JSON, DateTime  # Column types
from sqlalchemy import Enum as SAEnum  # Database enum type
from sqlmodel import Column, Field, Relationship, SQLModel, String  # For ORM and table definition


class UserStatus(str, Enum):
    """Status of an individual user."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    REJECTED = "REJECTED"
    DEACTIVATED = "DEACTIVATED"
    DELETED = "DELETED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Represents a User entity and acts as an Aggregate Root.

    A user always belongs to exactly one account. Credential material is only
    ever stored as a policy-validated hash; the clear text never reaches this
    model.

    Attributes:
        id: The unique identifier for the user (primary key).
        username: Unique login name.
        email: Contact email address.
        first_name / last_name: Display names.
        account_id: Owning account (strong reference).
        status: The user's own status.
        password_hash: Hash of the current credential, if any.
        password_changed_at: When the current credential was set.
        roles: Role identifiers assigned to the user.
        addresses: Owned address rows, deleted together with the user.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="The unique identifier for the user.",
    )
    username: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
        description="Unique login name.",
    )
    email: Optional[str] = Field(default=None, max_length=254)
    first_name: Optional[str] = Field(default=None, max_length=128)
    last_name: Optional[str] = Field(default=None, max_length=128)
    account_id: int = Field(
        foreign_key="accounts.id",
        index=True,
        nullable=False,
        description="Owning account.",
    )
    status: UserStatus = Field(
        default=UserStatus.ACTIVE,
        sa_column=Column(
            SAEnum(UserStatus, name="user_status"),
            nullable=False,
            default=UserStatus.ACTIVE,
        ),
    )
    password_hash: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Bcrypt hash of the current credential.",
    )
    password_changed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    roles: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="Role identifiers assigned to the user.",
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

    addresses: List["UserAddress"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"},
    )

    def touch(self, actor: str) -> None:
        """Stamps update metadata."""
        self.updated_by = actor
        self.updated_at = _utcnow()


class UserAddress(SQLModel, table=True):
    """An address owned by a user; removed whenever its user is removed."""

    __tablename__ = "user_addresses"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    country: Optional[str] = Field(default=None, max_length=64)
    state: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=128)
    address1: Optional[str] = Field(default=None, max_length=256)
    address2: Optional[str] = Field(default=None, max_length=256)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    time_zone: Optional[str] = Field(default=None, max_length=64)

    user: Optional[User] = Relationship(back_populates="addresses")
