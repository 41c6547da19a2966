"""Dependencies for the identity use cases.

Factories here are the composition root of a request: they read settings and
the startup components, and build repositories, the unit of work and the
services by explicit constructor wiring. All repositories of a request share
one session (FastAPI caches ``get_async_db`` per request), so the unit of
work commits their staged changes together.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from identity_core.core.config.settings import settings
from identity_core.core.initialization import IdentityComponents
from identity_core.domain.interfaces.audit import IAuditSink
from identity_core.domain.interfaces.repositories import (
    IAccountRepository,
    ICloudProfileRepository,
    IPasswordHistoryRepository,
    IUnitOfWork,
    IUserRepository,
)
from identity_core.domain.services.orchestration.user_account_orchestrator import (
    UserAccountOrchestrator,
)
from identity_core.domain.services.profiles.cloud_profile_service import CloudProfileService
from identity_core.infrastructure.database.async_db import get_async_db, get_session_factory
from identity_core.infrastructure.repositories import (
    AccountRepository,
    CloudProfileRepository,
    PasswordHistoryRepository,
    SQLAlchemyUnitOfWork,
    UserRepository,
)
from identity_core.infrastructure.services.audit_sink import SQLAuditSink

# ---------------------------------------------------------------------------
# Type aliases for dependency injection
# ---------------------------------------------------------------------------

AsyncDB = Annotated[AsyncSession, Depends(get_async_db)]


def get_components(request: Request) -> IdentityComponents:
    """Returns the policy, role catalog and hasher loaded at startup."""
    return request.app.state.components


Components = Annotated[IdentityComponents, Depends(get_components)]

# ---------------------------------------------------------------------------
# Infrastructure Layer Dependencies
# ---------------------------------------------------------------------------


def get_account_repository(db: AsyncDB) -> IAccountRepository:
    return AccountRepository(db)


def get_user_repository(db: AsyncDB) -> IUserRepository:
    return UserRepository(db)


def get_password_history_repository(db: AsyncDB) -> IPasswordHistoryRepository:
    return PasswordHistoryRepository(db)


def get_cloud_profile_repository(db: AsyncDB) -> ICloudProfileRepository:
    return CloudProfileRepository(db)


def get_unit_of_work(db: AsyncDB) -> IUnitOfWork:
    return SQLAlchemyUnitOfWork(db)


def get_audit_sink() -> IAuditSink:
    """Audit sink writing through its own sessions, outside the request's."""
    return SQLAuditSink(get_session_factory())


# ---------------------------------------------------------------------------
# Domain Service Dependencies
# ---------------------------------------------------------------------------


def get_user_account_orchestrator(
    components: Components,
    account_repository: IAccountRepository = Depends(get_account_repository),
    user_repository: IUserRepository = Depends(get_user_repository),
    history_repository: IPasswordHistoryRepository = Depends(get_password_history_repository),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    audit_sink: IAuditSink = Depends(get_audit_sink),
) -> UserAccountOrchestrator:
    """Builds the orchestrator for one request."""
    return UserAccountOrchestrator(
        account_repository=account_repository,
        user_repository=user_repository,
        password_history_repository=history_repository,
        unit_of_work=unit_of_work,
        audit_sink=audit_sink,
        password_hasher=components.password_hasher,
        rule_set=components.rule_set,
        role_resolver=components.role_resolver,
        enforcement_mode=settings.POLICY_ENFORCEMENT_MODE,
        max_account_depth=settings.MAX_ACCOUNT_DEPTH,
        default_account_name=settings.DEFAULT_ACCOUNT_NAME,
    )


def get_cloud_profile_service(
    profile_repository: ICloudProfileRepository = Depends(get_cloud_profile_repository),
    user_repository: IUserRepository = Depends(get_user_repository),
    account_repository: IAccountRepository = Depends(get_account_repository),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    audit_sink: IAuditSink = Depends(get_audit_sink),
) -> CloudProfileService:
    return CloudProfileService(
        profile_repository=profile_repository,
        user_repository=user_repository,
        account_repository=account_repository,
        unit_of_work=unit_of_work,
        audit_sink=audit_sink,
    )


Orchestrator = Annotated[UserAccountOrchestrator, Depends(get_user_account_orchestrator)]
ProfileService = Annotated[CloudProfileService, Depends(get_cloud_profile_service)]
