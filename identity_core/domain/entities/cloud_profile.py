from datetime import datetime, timezone  # For timestamp fields
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel, String


class CloudProfileStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


def business_key_for(user_id: int, profile_name: str) -> str:
    """Natural key of a profile: one active profile per user and name."""
    return f"{user_id}_{profile_name}"


class CloudProfile(SQLModel, table=True):
    """A named, free-form configuration blob stored for a user.

    Profiles are soft-deleted; a deleted profile keeps its row and frees its
    business key for a new active profile.
    """

    __tablename__ = "cloud_profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    profile_name: str = Field(sa_column=Column(String(128), nullable=False))
    business_key: str = Field(sa_column=Column(String(160), index=True, nullable=False))
    profile_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
    )
    status: CloudProfileStatus = Field(
        default=CloudProfileStatus.ACTIVE,
        sa_column=Column(String(16), nullable=False, default=CloudProfileStatus.ACTIVE.value),
    )
    created_by: Optional[str] = Field(default=None, max_length=256)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_by: Optional[str] = Field(default=None, max_length=256)
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
