"""Shared fixtures: in-memory repositories and a wired orchestrator."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from identity_core.core.exceptions import AuditWriteError
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.entities.cloud_profile import CloudProfile, CloudProfileStatus
from identity_core.domain.entities.user import User, UserStatus
from identity_core.domain.interfaces.repositories import (
    IAccountRepository,
    ICloudProfileRepository,
    IPasswordHistoryRepository,
    IUnitOfWork,
    IUserRepository,
)
from identity_core.domain.interfaces.security import IPasswordHasher
from identity_core.domain.services.orchestration.user_account_orchestrator import (
    UserAccountOrchestrator,
)
from identity_core.domain.services.policy.rule_set import DEFAULT_POLICY, PolicyRuleSet
from identity_core.domain.services.profiles.cloud_profile_service import CloudProfileService
from identity_core.domain.services.roles.role_scope_resolver import RoleScopeResolver
from identity_core.domain.value_objects.audit import AuditEvent
from identity_core.domain.value_objects.policy import EnforcementMode, PasswordHistoryEntry
from identity_core.infrastructure.services.audit_sink import InMemoryAuditSink

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

ROLE_CATALOG = {
    "VEHICLE_OWNER": ["vehicle:read", "vehicle:write"],
    "TENANT_ADMIN": ["account:read", "account:write", "user:write"],
    "GUEST": [],
}


class FakeHasher(IPasswordHasher):
    """Reversible stand-in for bcrypt, so tests stay fast and deterministic."""

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{password}"


class FakeAccountRepository(IAccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}
        self.saved: List[Account] = []
        self._next_id = 1

    def add(self, account: Account) -> Account:
        if account.id is None:
            account.id = self._next_id
        self._next_id = max(self._next_id, account.id) + 1
        self.accounts[account.id] = account
        return account

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        return self.accounts.get(account_id)

    async def get_by_name(self, account_name: str) -> Optional[Account]:
        return next(
            (account for account in self.accounts.values() if account.account_name == account_name),
            None,
        )

    async def save(self, account: Account) -> Account:
        self.saved.append(account)
        return self.add(account)


class FakeUserRepository(IUserRepository):
    def __init__(self):
        self.users: Dict[int, User] = {}
        self.saved: List[User] = []
        self._next_id = 1

    def add(self, user: User) -> User:
        if user.id is None:
            user.id = self._next_id
        self._next_id = max(self._next_id, user.id) + 1
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        return next((user for user in self.users.values() if user.username == username), None)

    async def save(self, user: User) -> User:
        self.saved.append(user)
        return self.add(user)

    async def list_by_account(self, account_id: int) -> List[User]:
        return [user for user in self.users.values() if user.account_id == account_id]


class FakePasswordHistoryRepository(IPasswordHistoryRepository):
    def __init__(self):
        self.entries: Dict[int, List[PasswordHistoryEntry]] = {}

    async def recent(self, user_id: int, limit: int) -> List[PasswordHistoryEntry]:
        entries = sorted(
            self.entries.get(user_id, []), key=lambda entry: entry.changed_at, reverse=True
        )
        return entries[:limit]

    async def append(self, user_id: int, password_hash: str, changed_at: datetime) -> None:
        self.entries.setdefault(user_id, []).append(
            PasswordHistoryEntry(password_hash=password_hash, changed_at=changed_at)
        )


class FakeCloudProfileRepository(ICloudProfileRepository):
    def __init__(self):
        self.profiles: Dict[int, CloudProfile] = {}
        self.saved: List[CloudProfile] = []
        self._next_id = 1

    async def get_by_id(self, profile_id: int) -> Optional[CloudProfile]:
        return self.profiles.get(profile_id)

    async def get_active_by_business_key(self, business_key: str) -> Optional[CloudProfile]:
        return next(
            (
                profile
                for profile in self.profiles.values()
                if profile.business_key == business_key
                and profile.status != CloudProfileStatus.DELETED
            ),
            None,
        )

    async def list_active_by_user(self, user_id: int) -> List[CloudProfile]:
        return [
            profile
            for profile in self.profiles.values()
            if profile.user_id == user_id and profile.status != CloudProfileStatus.DELETED
        ]

    async def save(self, profile: CloudProfile) -> CloudProfile:
        self.saved.append(profile)
        if profile.id is None:
            profile.id = self._next_id
            self._next_id += 1
        self.profiles[profile.id] = profile
        return profile


class FakeUnitOfWork(IUnitOfWork):
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0
        self.fail_with: Optional[Exception] = None

    async def commit(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FailingAuditSink(InMemoryAuditSink):
    """Records the attempt, then fails like an unreachable audit store."""

    def __init__(self):
        super().__init__()
        self.attempts: List[AuditEvent] = []

    async def append(self, event: AuditEvent) -> None:
        self.attempts.append(event)
        raise AuditWriteError()


@pytest.fixture
def hasher():
    return FakeHasher()


@pytest.fixture
def account_repository():
    return FakeAccountRepository()


@pytest.fixture
def user_repository():
    return FakeUserRepository()


@pytest.fixture
def history_repository():
    return FakePasswordHistoryRepository()


@pytest.fixture
def profile_repository():
    return FakeCloudProfileRepository()


@pytest.fixture
def unit_of_work():
    return FakeUnitOfWork()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def rule_set():
    return PolicyRuleSet.load(DEFAULT_POLICY)


@pytest.fixture
def role_resolver():
    return RoleScopeResolver(ROLE_CATALOG)


@pytest.fixture
def make_orchestrator(
    account_repository,
    user_repository,
    history_repository,
    unit_of_work,
    audit_sink,
    hasher,
    rule_set,
    role_resolver,
):
    """Builds an orchestrator over the fakes; keyword arguments override parts."""

    def factory(**overrides) -> UserAccountOrchestrator:
        arguments = dict(
            account_repository=account_repository,
            user_repository=user_repository,
            password_history_repository=history_repository,
            unit_of_work=unit_of_work,
            audit_sink=audit_sink,
            password_hasher=hasher,
            rule_set=rule_set,
            role_resolver=role_resolver,
            enforcement_mode=EnforcementMode.BLOCK_ON_REQUIRED_ONLY,
            max_account_depth=10,
            default_account_name="default",
            clock=lambda: FIXED_NOW,
        )
        arguments.update(overrides)
        return UserAccountOrchestrator(**arguments)

    return factory


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()


@pytest.fixture
def profile_service(
    profile_repository, user_repository, account_repository, unit_of_work, audit_sink
):
    return CloudProfileService(
        profile_repository=profile_repository,
        user_repository=user_repository,
        account_repository=account_repository,
        unit_of_work=unit_of_work,
        audit_sink=audit_sink,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def active_account(account_repository):
    return account_repository.add(
        Account(
            account_name="fleet-eu",
            status=AccountStatus.ACTIVE,
            default_roles=["VEHICLE_OWNER"],
        )
    )


@pytest.fixture
def existing_user(user_repository, active_account):
    return user_repository.add(
        User(
            username="john_doe",
            email="john@example.com",
            account_id=active_account.id,
            status=UserStatus.ACTIVE,
            roles=["VEHICLE_OWNER"],
            password_hash="hashed:Old-Passw0rd!",
            password_changed_at=FIXED_NOW,
        )
    )
