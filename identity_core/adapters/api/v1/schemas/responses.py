from __future__ import annotations

"""Response models for the identity endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AccountOut(BaseModel):
    id: int
    account_name: str
    parent_id: Optional[int] = None
    status: str
    default_roles: List[str] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class AddressOut(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    postal_code: Optional[str] = None
    time_zone: Optional[str] = None


class UserOut(BaseModel):
    """Public representation of a user. Credential material is never exposed."""

    id: int
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    account_id: int
    status: str
    roles: List[str] = Field(default_factory=list)
    addresses: List[AddressOut] = Field(default_factory=list)
    password_changed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ViolationOut(BaseModel):
    rule_key: str
    check: str
    message: str
    offending: List[Any] = Field(default_factory=list)
    advisory: bool = False


class PasswordEvaluationOut(BaseModel):
    blocked: bool
    violations: List[ViolationOut] = Field(default_factory=list)


class RoleResolutionOut(BaseModel):
    roles: Dict[str, List[str]]


class SessionEligibilityOut(BaseModel):
    user_id: int
    eligible: bool
    reasons: List[str] = Field(default_factory=list)


class CloudProfileOut(BaseModel):
    id: int
    user_id: int
    profile_name: str
    profile_data: Dict[str, Any] = Field(default_factory=dict)
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    services: Dict[str, Any]
    timestamp: datetime
