from __future__ import annotations

"""Request-payload Pydantic models for the identity endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from identity_core.domain.entities.account import AccountStatus
from identity_core.domain.entities.user import UserStatus

# ---------------------------------------------------------------------------
# Accounts -------------------------------------------------------------------
# ---------------------------------------------------------------------------


class AccountCreateRequest(BaseModel):
    """Payload expected by ``POST /accounts``."""

    model_config = ConfigDict(extra="forbid")

    account_name: str = Field(..., min_length=1, max_length=254, examples=["fleet-eu"])
    parent_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[AccountStatus] = Field(
        default=None, description="Initial status; accounts start PENDING when omitted"
    )
    default_roles: Optional[List[str]] = Field(default=None, examples=[["VEHICLE_OWNER"]])


class AccountUpdateRequest(BaseModel):
    """Payload expected by ``PUT /accounts/{account_id}``. Omitted fields are unchanged."""

    model_config = ConfigDict(extra="forbid")

    account_name: Optional[str] = Field(default=None, min_length=1, max_length=254)
    parent_id: Optional[int] = Field(default=None, ge=1)
    clear_parent: bool = Field(default=False, description="Detach the account from its parent")
    status: Optional[AccountStatus] = None
    default_roles: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Users ----------------------------------------------------------------------
# ---------------------------------------------------------------------------


class AddressPayload(BaseModel):
    country: Optional[str] = Field(default=None, max_length=64)
    state: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=128)
    address1: Optional[str] = Field(default=None, max_length=256)
    address2: Optional[str] = Field(default=None, max_length=256)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    time_zone: Optional[str] = Field(default=None, max_length=64)


class UserCreateRequest(BaseModel):
    """Payload expected by ``POST /users``."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1, max_length=254, examples=["john_doe"])
    email: Optional[EmailStr] = Field(default=None, examples=["john@example.com"])
    first_name: Optional[str] = Field(default=None, max_length=128)
    last_name: Optional[str] = Field(default=None, max_length=128)
    account_id: int = Field(..., ge=1)
    status: Optional[UserStatus] = None
    password: Optional[str] = Field(default=None, examples=["Str0ngP@ssw0rd"])
    roles: Optional[List[str]] = Field(
        default=None, description="Defaults to the account's default roles when omitted"
    )
    addresses: Optional[List[AddressPayload]] = None


class UserUpdateRequest(BaseModel):
    """Payload expected by ``PUT /users/{user_id}``. Omitted fields are unchanged."""

    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(default=None, min_length=1, max_length=254)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=128)
    last_name: Optional[str] = Field(default=None, max_length=128)
    account_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[UserStatus] = None
    password: Optional[str] = None
    roles: Optional[List[str]] = None
    addresses: Optional[List[AddressPayload]] = None


# ---------------------------------------------------------------------------
# Policy, roles and cloud profiles -------------------------------------------
# ---------------------------------------------------------------------------


class PasswordEvaluationRequest(BaseModel):
    """Payload expected by ``POST /passwords/evaluate``."""

    password: str = Field(..., examples=["Str0ngP@ssw0rd"])
    username: Optional[str] = None


class RoleResolutionRequest(BaseModel):
    """Payload expected by ``POST /roles/resolve``."""

    role_ids: List[str] = Field(..., examples=[["VEHICLE_OWNER", "TENANT_ADMIN"]])


class CloudProfileCreateRequest(BaseModel):
    profile_name: str = Field(..., min_length=1, max_length=128, examples=["settings"])
    profile_data: Dict[str, Any] = Field(default_factory=dict)


class CloudProfileUpdateRequest(BaseModel):
    profile_data: Dict[str, Any] = Field(default_factory=dict)
