"""Cloud profile use cases.

A cloud profile is a named JSON document a user keeps on the server. Every
operation requires a live user whose account still allows user operations.
Profiles are never removed; deleting one marks it DELETED and frees its name.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

import structlog

from identity_core.core.exceptions import (
    AccountNotFoundError,
    AccountStatusGatingError,
    CloudProfileConflictError,
    CloudProfileNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from identity_core.domain.entities.cloud_profile import (
    CloudProfile,
    CloudProfileStatus,
    business_key_for,
)
from identity_core.domain.entities.user import User, UserStatus
from identity_core.domain.interfaces.audit import IAuditSink
from identity_core.domain.interfaces.repositories import (
    IAccountRepository,
    ICloudProfileRepository,
    IUnitOfWork,
    IUserRepository,
)
from identity_core.domain.security.pii_masking import pii_masker
from identity_core.domain.services.account.account_state import denies_new_sessions
from identity_core.domain.services.orchestration.operation import (
    OperationContext,
    TransactionalService,
)
from identity_core.domain.services.orchestration.requests import CloudProfileRequest
from identity_core.domain.services.orchestration.results import OperationResult, RequestPhase
from identity_core.domain.value_objects.audit import AuditAction, AuditEvent, TargetType

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CloudProfileService(TransactionalService):
    """Manages per-user cloud profiles."""

    def __init__(
        self,
        profile_repository: ICloudProfileRepository,
        user_repository: IUserRepository,
        account_repository: IAccountRepository,
        unit_of_work: IUnitOfWork,
        audit_sink: IAuditSink,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(unit_of_work, audit_sink)
        self._profiles = profile_repository
        self._users = user_repository
        self._accounts = account_repository
        self._clock = clock

    async def add_profile(self, request: CloudProfileRequest) -> OperationResult[CloudProfile]:
        context = OperationContext("add_cloud_profile", request.correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            if not request.profile_name:
                raise ValidationError("Profile name is required")
            await self._get_eligible_user(request.user_id)
            key = business_key_for(request.user_id, request.profile_name)
            if await self._profiles.get_active_by_business_key(key) is not None:
                raise CloudProfileConflictError(
                    f"User {request.user_id} already has a profile named '{request.profile_name}'"
                )
            profile = CloudProfile(
                user_id=request.user_id,
                profile_name=request.profile_name,
                business_key=key,
                profile_data=dict(request.profile_data),
                status=CloudProfileStatus.ACTIVE,
                created_by=request.actor,
                created_at=self._clock(),
            )

            saved = await self._persist(context, lambda: self._profiles.save(profile))

            audit_recorded = await self._record(
                context,
                self._event(context, request.actor, AuditAction.CLOUD_PROFILE_CREATED, saved),
            )
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def get_profiles(
        self, user_id: int, correlation_id: Optional[str] = None
    ) -> OperationResult[List[CloudProfile]]:
        context = OperationContext("get_cloud_profiles", correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            await self._get_eligible_user(user_id)
            return context.succeed(await self._profiles.list_active_by_user(user_id))
        except Exception as exc:
            return context.fail(exc)

    async def update_profile(self, request: CloudProfileRequest) -> OperationResult[CloudProfile]:
        """Replaces the data of an existing, non-deleted profile."""
        context = OperationContext("update_cloud_profile", request.correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            await self._get_eligible_user(request.user_id)
            profile = await self._get_active_profile(request.user_id, request.profile_name)
            profile.profile_data = dict(request.profile_data)
            profile.updated_by = request.actor
            profile.updated_at = self._clock()

            saved = await self._persist(context, lambda: self._profiles.save(profile))

            audit_recorded = await self._record(
                context,
                self._event(context, request.actor, AuditAction.CLOUD_PROFILE_UPDATED, saved),
            )
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def delete_profile(
        self,
        user_id: int,
        profile_name: str,
        actor: str,
        correlation_id: Optional[str] = None,
    ) -> OperationResult[CloudProfile]:
        context = OperationContext("delete_cloud_profile", correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            await self._get_eligible_user(user_id)
            profile = await self._get_active_profile(user_id, profile_name)
            profile.status = CloudProfileStatus.DELETED
            profile.updated_by = actor
            profile.updated_at = self._clock()

            saved = await self._persist(context, lambda: self._profiles.save(profile))

            audit_recorded = await self._record(
                context, self._event(context, actor, AuditAction.CLOUD_PROFILE_DELETED, saved)
            )
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def _get_eligible_user(self, user_id: int) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None or user.status == UserStatus.DELETED:
            raise UserNotFoundError(f"User {user_id} not found")
        account = await self._accounts.get_by_id(user.account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {user.account_id} not found")
        if denies_new_sessions(account.status):
            raise AccountStatusGatingError(account.id, account.status.value)
        return user

    async def _get_active_profile(self, user_id: int, profile_name: str) -> CloudProfile:
        profile = await self._profiles.get_active_by_business_key(
            business_key_for(user_id, profile_name)
        )
        if profile is None:
            raise CloudProfileNotFoundError(
                f"User {user_id} has no profile named '{profile_name}'"
            )
        return profile

    def _event(
        self,
        context: OperationContext,
        actor: str,
        action: AuditAction,
        profile: CloudProfile,
    ) -> AuditEvent:
        return AuditEvent(
            actor=actor,
            action=action,
            target_type=TargetType.CLOUD_PROFILE,
            target_id=str(profile.id),
            timestamp=self._clock(),
            correlation_id=context.correlation_id,
            details=pii_masker.mask_details(
                {
                    "user_id": profile.user_id,
                    "profile_name": profile.profile_name,
                    "status": CloudProfileStatus(profile.status).value,
                }
            ),
        )
