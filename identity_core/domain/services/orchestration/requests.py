"""Domain request structures for orchestrated operations.

These are the boundary structs the HTTP schemas are mapped onto. For updates
a field left as None means "unchanged".
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from identity_core.domain.entities.account import AccountStatus
from identity_core.domain.entities.user import UserStatus


@dataclass(frozen=True)
class AccountRequest:
    actor: str
    account_id: Optional[int] = None
    account_name: Optional[str] = None
    parent_id: Optional[int] = None
    clear_parent: bool = False
    status: Optional[AccountStatus] = None
    default_roles: Optional[Tuple[str, ...]] = None
    correlation_id: Optional[str] = None

    @property
    def is_create(self) -> bool:
        return self.account_id is None


@dataclass(frozen=True)
class AddressData:
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    postal_code: Optional[str] = None
    time_zone: Optional[str] = None


@dataclass(frozen=True)
class UserRequest:
    """Create (``user_id`` None) or update a user.

    ``password`` is the clear-text candidate; it is excluded from ``repr`` so
    it never reaches a log line.
    """

    actor: str
    user_id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    account_id: Optional[int] = None
    status: Optional[UserStatus] = None
    password: Optional[str] = field(default=None, repr=False)
    roles: Optional[Tuple[str, ...]] = None
    addresses: Optional[Tuple[AddressData, ...]] = None
    correlation_id: Optional[str] = None

    @property
    def is_create(self) -> bool:
        return self.user_id is None


@dataclass(frozen=True)
class CloudProfileRequest:
    actor: str
    user_id: int
    profile_name: str
    profile_data: Mapping[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None
