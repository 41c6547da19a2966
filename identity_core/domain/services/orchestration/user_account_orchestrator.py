"""User and account use cases.

The orchestrator composes the account state machine, the hierarchy check,
the role resolver and the password policy into the create/update flows of
accounts and users. Each public operation:

1. validates everything it can before touching the store,
2. runs the password policy when a credential is present,
3. persists all changes in one transaction,
4. writes exactly one audit event,

and returns an ``OperationResult`` instead of raising.
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import structlog

from identity_core.core.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    AccountStatusGatingError,
    DefaultAccountProtectedError,
    PolicyViolationError,
    TerminalStateError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.entities.user import User, UserAddress, UserStatus
from identity_core.domain.interfaces.audit import IAuditSink
from identity_core.domain.interfaces.repositories import (
    IAccountRepository,
    IPasswordHistoryRepository,
    IUnitOfWork,
    IUserRepository,
)
from identity_core.domain.interfaces.security import IPasswordHasher
from identity_core.domain.security.pii_masking import pii_masker
from identity_core.domain.services.account.account_state import (
    AccountStateMachine,
    denies_new_sessions,
)
from identity_core.domain.services.account.hierarchy import AccountHierarchy
from identity_core.domain.services.orchestration.operation import (
    OperationContext,
    TransactionalService,
)
from identity_core.domain.services.orchestration.requests import (
    AccountRequest,
    AddressData,
    UserRequest,
)
from identity_core.domain.services.orchestration.results import (
    OperationResult,
    PasswordEvaluation,
    RequestPhase,
    SessionEligibility,
)
from identity_core.domain.services.policy.evaluator import (
    PasswordPolicyEvaluator,
    blocking,
    expired_violations,
)
from identity_core.domain.services.policy.rule_set import PolicyRuleSet
from identity_core.domain.services.roles.role_scope_resolver import RoleScopeResolver
from identity_core.domain.value_objects.audit import AuditAction, AuditEvent, TargetType
from identity_core.domain.value_objects.policy import EnforcementMode, PolicyViolation

logger = structlog.get_logger(__name__)

ACCOUNT_NAME_PATTERN = re.compile(r"^[^\\!()*~<>'\",:;${}|+?%]{1,254}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _address_entity(address: AddressData) -> UserAddress:
    return UserAddress(
        country=address.country,
        state=address.state,
        city=address.city,
        address1=address.address1,
        address2=address.address2,
        postal_code=address.postal_code,
        time_zone=address.time_zone,
    )


class UserAccountOrchestrator(TransactionalService):
    """Use-case layer for account and user mutations.

    Args:
        account_repository: Account persistence port.
        user_repository: User persistence port.
        password_history_repository: Credential history port.
        unit_of_work: Transaction boundary shared by the repositories.
        audit_sink: Append-only audit log, outside the transaction.
        password_hasher: Hashes accepted credentials and compares history.
        rule_set: The password policy loaded at startup.
        role_resolver: The role catalog loaded at startup.
        enforcement_mode: Whether advisory violations block.
        max_account_depth: Bound on account ancestor chains.
        default_account_name: Name of the protected default account.
        clock: Source of "now"; defaults to UTC wall time.
    """

    def __init__(
        self,
        account_repository: IAccountRepository,
        user_repository: IUserRepository,
        password_history_repository: IPasswordHistoryRepository,
        unit_of_work: IUnitOfWork,
        audit_sink: IAuditSink,
        password_hasher: IPasswordHasher,
        rule_set: PolicyRuleSet,
        role_resolver: RoleScopeResolver,
        enforcement_mode: EnforcementMode = EnforcementMode.BLOCK_ON_REQUIRED_ONLY,
        max_account_depth: int = 10,
        default_account_name: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(unit_of_work, audit_sink)
        self._accounts = account_repository
        self._users = user_repository
        self._history = password_history_repository
        self._hasher = password_hasher
        self._rule_set = rule_set
        self._resolver = role_resolver
        self._enforcement_mode = enforcement_mode
        self._default_account_name = default_account_name
        self._clock = clock
        self._evaluator = PasswordPolicyEvaluator(password_hasher)
        self._hierarchy = AccountHierarchy(account_repository, max_account_depth)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_or_update_account(self, request: AccountRequest) -> OperationResult[Account]:
        """Creates an account (``account_id`` None) or updates one.

        Name pattern and uniqueness, default roles, the parent reference and
        the status transition are all validated before any save.
        """
        context = OperationContext("create_or_update_account", request.correlation_id)
        context.logger.info(
            "Account mutation received",
            account_id=request.account_id,
            is_create=request.is_create,
        )
        try:
            context.advance(RequestPhase.VALIDATING)
            if request.is_create:
                account, action, details = await self._prepare_new_account(request)
            else:
                account, action, details = await self._prepare_account_update(request)
            notes = self._empty_role_notes(context, account.default_roles)

            saved = await self._persist(context, lambda: self._accounts.save(account))

            event = self._event(
                context,
                request.actor,
                action,
                TargetType.ACCOUNT,
                saved.id,
                details,
                notes,
            )
            audit_recorded = await self._record(context, event)
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def delete_account(
        self, account_id: int, actor: str, correlation_id: Optional[str] = None
    ) -> OperationResult[Account]:
        """Soft-deletes an account by moving it to DELETED.

        Users of the account are left untouched; they are denied new sessions
        through their account's status.
        """
        context = OperationContext("delete_account", correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            account = await self._get_account(account_id)
            self._ensure_not_default(account)
            previous = account.status
            account.status = AccountStateMachine.transition(account.status, AccountStatus.DELETED)
            account.touch(actor)

            saved = await self._persist(context, lambda: self._accounts.save(account))

            event = self._event(
                context,
                actor,
                AuditAction.ACCOUNT_DELETED,
                TargetType.ACCOUNT,
                saved.id,
                {"status": {"from": previous.value, "to": AccountStatus.DELETED.value}},
            )
            audit_recorded = await self._record(context, event)
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def _prepare_new_account(
        self, request: AccountRequest
    ) -> Tuple[Account, AuditAction, Dict[str, Any]]:
        name = self._validate_account_name(request.account_name)
        if await self._accounts.get_by_name(name) is not None:
            raise AccountAlreadyExistsError(f"Account '{name}' already exists")

        default_roles = list(request.default_roles or ())
        self._resolver.validate_default_roles(default_roles)
        await self._hierarchy.validate_parent(None, request.parent_id)

        status = AccountStatus.PENDING
        if request.status is not None and request.status != AccountStatus.PENDING:
            status = AccountStateMachine.transition(AccountStatus.PENDING, request.status)

        account = Account(
            account_name=name,
            parent_id=request.parent_id,
            status=status,
            default_roles=default_roles,
            created_by=request.actor,
        )
        details = {
            "account_name": name,
            "parent_id": request.parent_id,
            "status": status.value,
            "default_roles": default_roles,
        }
        return account, AuditAction.ACCOUNT_CREATED, details

    async def _prepare_account_update(
        self, request: AccountRequest
    ) -> Tuple[Account, AuditAction, Dict[str, Any]]:
        account = await self._get_account(request.account_id)
        self._ensure_not_default(account)
        if account.is_deleted:
            raise TerminalStateError(
                account.status.value, (request.status or account.status).value
            )

        changes: Dict[str, Any] = {}

        if request.account_name is not None and request.account_name != account.account_name:
            name = self._validate_account_name(request.account_name)
            existing = await self._accounts.get_by_name(name)
            if existing is not None and existing.id != account.id:
                raise AccountAlreadyExistsError(f"Account '{name}' already exists")
            changes["account_name"] = {"from": account.account_name, "to": name}

        if request.clear_parent:
            if account.parent_id is not None:
                changes["parent_id"] = {"from": account.parent_id, "to": None}
        elif request.parent_id is not None:
            await self._hierarchy.validate_parent(account.id, request.parent_id)
            if request.parent_id != account.parent_id:
                changes["parent_id"] = {"from": account.parent_id, "to": request.parent_id}

        if request.default_roles is not None:
            roles = list(request.default_roles)
            self._resolver.validate_default_roles(roles)
            if roles != list(account.default_roles):
                changes["default_roles"] = {"from": list(account.default_roles), "to": roles}

        if request.status is not None and request.status != account.status:
            AccountStateMachine.transition(account.status, request.status)
            changes["status"] = {"from": account.status.value, "to": request.status.value}

        # Apply only after every check passed.
        if "account_name" in changes:
            account.account_name = changes["account_name"]["to"]
        if "parent_id" in changes:
            account.parent_id = changes["parent_id"]["to"]
        if "default_roles" in changes:
            account.default_roles = changes["default_roles"]["to"]
        if "status" in changes:
            account.status = request.status
        account.touch(request.actor)

        action = (
            AuditAction.ACCOUNT_STATUS_CHANGED
            if set(changes) == {"status"}
            else AuditAction.ACCOUNT_UPDATED
        )
        return account, action, {"changes": changes}

    def _validate_account_name(self, name: Optional[str]) -> str:
        if not name:
            raise ValidationError("Account name is required")
        if not ACCOUNT_NAME_PATTERN.match(name):
            raise ValidationError(
                f"Account name must be 1-254 characters and must not contain any of "
                f"\\ ! ( ) * ~ < > ' \" , : ; $ {{ }} | + ? %"
            )
        return name

    def _ensure_not_default(self, account: Account) -> None:
        if self._default_account_name and account.account_name == self._default_account_name:
            raise DefaultAccountProtectedError(
                f"The default account '{account.account_name}' cannot be modified"
            )

    async def _get_account(self, account_id: Optional[int]) -> Account:
        account = await self._accounts.get_by_id(account_id) if account_id is not None else None
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    async def _get_gated_account(self, account_id: Optional[int]) -> Account:
        """Loads an account that must allow user operations."""
        if account_id is None:
            raise ValidationError("account_id is required")
        account = await self._get_account(account_id)
        if denies_new_sessions(account.status):
            raise AccountStatusGatingError(account.id, account.status.value)
        return account

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_or_update_user(self, request: UserRequest) -> OperationResult[User]:
        """Creates a user (``user_id`` None) or updates one.

        The owning account (and the target account on a move) must exist and
        must not be BLOCKED or DELETED. A present credential is evaluated
        against the policy with the user's stored history; all violations are
        returned together in one ``PolicyViolationError``.
        """
        context = OperationContext("create_or_update_user", request.correlation_id)
        context.logger.info(
            "User mutation received",
            user_id=request.user_id,
            account_id=request.account_id,
            is_create=request.is_create,
            has_password=request.password is not None,
        )
        try:
            context.advance(RequestPhase.VALIDATING)
            pending: Dict[str, Any] = {}
            if request.is_create:
                user, details = await self._prepare_new_user(request)
                action = AuditAction.USER_CREATED
            else:
                user, pending, details = await self._prepare_user_update(request)
                action = AuditAction.USER_UPDATED
            notes = self._empty_role_notes(context, pending.get("roles", user.roles))

            new_hash: Optional[str] = None
            if request.password is not None:
                context.advance(RequestPhase.POLICY_CHECK)
                new_hash, advisory = await self._check_password(
                    request.password, user, pending.get("username", user.username)
                )
                notes.extend(
                    f"advisory password violation: {violation.rule_key}.{violation.check}"
                    for violation in advisory
                )
                details["password_changed"] = True

            changed_at = self._clock()

            async def persist() -> User:
                if not request.is_create:
                    self._apply_user_changes(user, pending, request.actor)
                if new_hash is not None:
                    user.password_hash = new_hash
                    user.password_changed_at = changed_at
                saved = await self._users.save(user)
                if new_hash is not None:
                    await self._history.append(saved.id, new_hash, changed_at)
                return saved

            saved = await self._persist(context, persist)

            event = self._event(
                context, request.actor, action, TargetType.USER, saved.id, details, notes
            )
            audit_recorded = await self._record(context, event)
            return context.succeed(saved, audit_recorded)
        except Exception as exc:
            return context.fail(exc)

    async def _prepare_new_user(self, request: UserRequest) -> Tuple[User, Dict[str, Any]]:
        if not request.username:
            raise ValidationError("Username is required")
        account = await self._get_gated_account(request.account_id)
        if await self._users.get_by_username(request.username) is not None:
            raise UserAlreadyExistsError(f"Username '{request.username}' is already taken")

        roles = list(request.roles) if request.roles is not None else list(account.default_roles)
        self._resolver.resolve(roles)

        user = User(
            username=request.username,
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            account_id=account.id,
            status=request.status or UserStatus.ACTIVE,
            roles=roles,
            addresses=[_address_entity(address) for address in request.addresses or ()],
            created_by=request.actor,
        )
        details = {
            "username": user.username,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "account_id": account.id,
            "status": user.status.value,
            "roles": roles,
            "address_count": len(user.addresses),
        }
        return user, details

    async def _prepare_user_update(
        self, request: UserRequest
    ) -> Tuple[User, Dict[str, Any], Dict[str, Any]]:
        """Validates an update without modifying the loaded user.

        Returns:
            The stored user, the attribute values to set once every check has
            passed, and the audit details.
        """
        user = await self._users.get_by_id(request.user_id)
        if user is None:
            raise UserNotFoundError(f"User {request.user_id} not found")
        await self._get_gated_account(user.account_id)

        changes: Dict[str, Any] = {}
        if request.account_id is not None and request.account_id != user.account_id:
            await self._get_gated_account(request.account_id)
            changes["account_id"] = {"from": user.account_id, "to": request.account_id}

        if request.username is not None and request.username != user.username:
            existing = await self._users.get_by_username(request.username)
            if existing is not None and existing.id != user.id:
                raise UserAlreadyExistsError(f"Username '{request.username}' is already taken")
            changes["username"] = {"from": user.username, "to": request.username}

        if request.roles is not None:
            roles = list(request.roles)
            self._resolver.resolve(roles)
            if roles != list(user.roles):
                changes["roles"] = {"from": list(user.roles), "to": roles}

        for field_name in ("email", "first_name", "last_name", "status"):
            value = getattr(request, field_name)
            if value is not None and value != getattr(user, field_name):
                current = getattr(user, field_name)
                changes[field_name] = {
                    "from": getattr(current, "value", current),
                    "to": getattr(value, "value", value),
                }

        pending: Dict[str, Any] = {}
        for field_name, change in changes.items():
            new_value = change["to"]
            if field_name == "status":
                new_value = UserStatus(new_value)
            pending[field_name] = new_value
        if request.addresses is not None:
            pending["addresses"] = [_address_entity(address) for address in request.addresses]
            changes["address_count"] = len(pending["addresses"])
        return user, pending, {"changes": changes}

    @staticmethod
    def _apply_user_changes(user: User, pending: Dict[str, Any], actor: str) -> None:
        for field_name, value in pending.items():
            setattr(user, field_name, value)
        user.touch(actor)

    async def _check_password(
        self, candidate: str, user: User, username: Optional[str]
    ) -> Tuple[str, Tuple[PolicyViolation, ...]]:
        """Evaluates ``candidate`` for ``user`` and hashes it when accepted.

        Args:
            candidate: The clear-text credential.
            user: The stored user, or the unsaved one on create.
            username: The username the user will have after this request.

        Returns:
            The new hash and the advisory violations that did not block.

        Raises:
            PolicyViolationError: Carrying the full violation list.
        """
        history: Sequence = ()
        depth = self._rule_set.max_parameter("historyDepth")
        if user.id is not None and depth > 0:
            history = await self._history.recent(user.id, depth)

        violations = self._evaluator.evaluate(
            candidate,
            self._rule_set,
            history,
            username,
            last_changed_at=user.password_changed_at,
            now=self._clock(),
        )
        blockers = blocking(violations, self._enforcement_mode)
        if blockers:
            raise PolicyViolationError(violations)
        return self._hasher.hash(candidate), violations

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_account(
        self, account_id: int, correlation_id: Optional[str] = None
    ) -> OperationResult[Account]:
        """Reads an account back, soft-deleted accounts included."""
        context = OperationContext("get_account", correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            return context.succeed(await self._get_account(account_id))
        except Exception as exc:
            return context.fail(exc)

    def evaluate_password_only(
        self, candidate: str, username: Optional[str] = None
    ) -> OperationResult[PasswordEvaluation]:
        """Evaluates a candidate without history and without persisting."""
        context = OperationContext("evaluate_password_only")
        try:
            context.advance(RequestPhase.POLICY_CHECK)
            violations = self._evaluator.evaluate(candidate, self._rule_set, (), username)
            evaluation = PasswordEvaluation(
                violations=violations,
                blocking_violations=blocking(violations, self._enforcement_mode),
            )
            return context.succeed(evaluation)
        except Exception as exc:
            return context.fail(exc)

    def resolve_roles(self, role_ids: Iterable[str]) -> OperationResult[Dict[str, FrozenSet[str]]]:
        context = OperationContext("resolve_roles")
        try:
            context.advance(RequestPhase.VALIDATING)
            return context.succeed(self._resolver.resolve(role_ids))
        except Exception as exc:
            return context.fail(exc)

    async def check_session_eligibility(
        self, user_id: int, correlation_id: Optional[str] = None
    ) -> OperationResult[SessionEligibility]:
        """Reports whether a user may open new sessions.

        The account status cascade is read here, at query time; user rows
        are not rewritten when their account is blocked or deleted.
        """
        context = OperationContext("check_session_eligibility", correlation_id)
        try:
            context.advance(RequestPhase.VALIDATING)
            user = await self._users.get_by_id(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")
            account = await self._get_account(user.account_id)

            reasons: List[str] = []
            if denies_new_sessions(account.status):
                reasons.append(f"account_{account.status.value.lower()}")
            if user.status != UserStatus.ACTIVE:
                reasons.append(f"user_{user.status.value.lower()}")
            expired = blocking(
                expired_violations(self._rule_set, user.password_changed_at, self._clock()),
                self._enforcement_mode,
            )
            if expired:
                reasons.append("password_expired")

            return context.succeed(
                SessionEligibility(user_id=user_id, eligible=not reasons, reasons=tuple(reasons))
            )
        except Exception as exc:
            return context.fail(exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _empty_role_notes(self, context: OperationContext, role_ids: Iterable[str]) -> List[str]:
        empty = self._resolver.empty_roles(role_ids)
        if empty:
            context.logger.warning("Roles without scopes assigned", roles=empty)
        return [f"role without scopes: {role_id}" for role_id in empty]

    def _event(
        self,
        context: OperationContext,
        actor: str,
        action: AuditAction,
        target_type: TargetType,
        target_id: Any,
        details: Dict[str, Any],
        notes: Iterable[str] = (),
    ) -> AuditEvent:
        return AuditEvent(
            actor=actor,
            action=action,
            target_type=target_type,
            target_id=str(target_id),
            timestamp=self._clock(),
            correlation_id=context.correlation_id,
            details=pii_masker.mask_details(details),
            notes=tuple(notes),
        )
