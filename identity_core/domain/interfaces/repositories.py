"""Repository interfaces for abstracting data persistence in the domain layer.

The domain layer uses these ports to read and stage changes without being
coupled to a specific store. Concrete SQLModel adapters live in
``identity_core.infrastructure.repositories``.

Repositories never commit. Staged changes become durable only when the
orchestrating service calls ``IUnitOfWork.commit``; any error raised by the
store is surfaced as ``PersistenceError``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from identity_core.domain.entities.account import Account
from identity_core.domain.entities.cloud_profile import CloudProfile
from identity_core.domain.entities.user import User
from identity_core.domain.value_objects.policy import PasswordHistoryEntry


class IAccountRepository(ABC):
    """Contract for account persistence operations."""

    @abstractmethod
    async def get_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieves an account by its unique identifier.

        Args:
            account_id: The unique integer ID of the account.

        Returns:
            An optional `Account` entity. Returns `None` if no account is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_name(self, account_name: str) -> Optional[Account]:
        """Retrieves an account by its exact, case-sensitive name."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, account: Account) -> Account:
        """Stages a new or updated account and returns it with its identifier."""
        raise NotImplementedError


class IUserRepository(ABC):
    """Contract for user persistence operations.

    Manages the lifecycle of the `User` aggregate root together with its
    owned addresses.
    """

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieves a user by their unique identifier.

        Args:
            user_id: The unique integer ID of the user.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Retrieves a user by username.

        Args:
            username: The username to search for.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def save(self, user: User) -> User:
        """Stages a new or updated user.

        If the `User` entity has an ID, it's an update; otherwise, it's a new
        creation and the returned entity carries the assigned ID.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_by_account(self, account_id: int) -> List[User]:
        """Lists every user owned by the given account."""
        raise NotImplementedError


class IPasswordHistoryRepository(ABC):
    """Contract for the per-user credential history."""

    @abstractmethod
    async def recent(self, user_id: int, limit: int) -> List[PasswordHistoryEntry]:
        """Returns up to ``limit`` most recent entries, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def append(self, user_id: int, password_hash: str, changed_at: datetime) -> None:
        """Stages a new history row for the user."""
        raise NotImplementedError


class ICloudProfileRepository(ABC):
    """Contract for cloud profile persistence operations."""

    @abstractmethod
    async def get_by_id(self, profile_id: int) -> Optional[CloudProfile]:
        raise NotImplementedError

    @abstractmethod
    async def get_active_by_business_key(self, business_key: str) -> Optional[CloudProfile]:
        """Retrieves the non-deleted profile with the given business key."""
        raise NotImplementedError

    @abstractmethod
    async def list_active_by_user(self, user_id: int) -> List[CloudProfile]:
        """Lists the user's non-deleted profiles."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, profile: CloudProfile) -> CloudProfile:
        raise NotImplementedError


class IUnitOfWork(ABC):
    """Transaction boundary shared by the repositories of one request."""

    @abstractmethod
    async def commit(self) -> None:
        """Makes all staged changes durable.

        Raises:
            PersistenceError: If the store rejects the transaction.
        """
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        """Discards all staged changes."""
        raise NotImplementedError
