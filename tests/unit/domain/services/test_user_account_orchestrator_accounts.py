import pytest

from identity_core.core.exceptions import (
    AccountAlreadyExistsError,
    AccountHierarchyError,
    AccountNotFoundError,
    DefaultAccountProtectedError,
    DuplicateOrUnknownRoleError,
    IdentityError,
    InvalidTransitionError,
    PersistenceError,
    PersistenceTimeoutError,
    TerminalStateError,
    ValidationError,
)
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.services.orchestration.requests import AccountRequest
from identity_core.domain.services.orchestration.results import RequestPhase
from identity_core.domain.value_objects.audit import AuditAction, TargetType
from tests.conftest import FailingAuditSink


class TestCreateAccount:
    @pytest.mark.asyncio
    async def test_account_is_created_pending(self, orchestrator, unit_of_work, audit_sink):
        # Arrange
        request = AccountRequest(
            actor="admin",
            account_name="fleet-us",
            default_roles=("VEHICLE_OWNER",),
            correlation_id="corr-1",
        )

        # Act
        result = await orchestrator.create_or_update_account(request)

        # Assert
        assert result.ok
        assert result.phase == RequestPhase.DONE
        assert result.audit_recorded is True
        account = result.value
        assert account.id is not None
        assert account.status == AccountStatus.PENDING
        assert account.default_roles == ["VEHICLE_OWNER"]
        assert account.created_by == "admin"
        assert unit_of_work.commits == 1

        (event,) = audit_sink.events
        assert event.action == AuditAction.ACCOUNT_CREATED
        assert event.target_type == TargetType.ACCOUNT
        assert event.target_id == str(account.id)
        assert event.correlation_id == "corr-1"
        assert event.details["account_name"] == "fleet-us"

    @pytest.mark.asyncio
    async def test_requested_initial_status_must_be_reachable(self, orchestrator):
        active = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="a1", status=AccountStatus.ACTIVE)
        )
        blocked = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="a2", status=AccountStatus.BLOCKED)
        )

        assert active.value.status == AccountStatus.ACTIVE
        assert isinstance(blocked.error, InvalidTransitionError)

    @pytest.mark.parametrize("name", ["", "bad!name", "a:b", "x" * 255, "{curly}"])
    @pytest.mark.asyncio
    async def test_invalid_names_are_rejected(self, orchestrator, account_repository, name):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name=name)
        )

        assert isinstance(result.error, ValidationError)
        assert account_repository.saved == []

    @pytest.mark.asyncio
    async def test_duplicate_name(self, orchestrator, active_account, audit_sink):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name=active_account.account_name)
        )

        assert isinstance(result.error, AccountAlreadyExistsError)
        assert result.phase == RequestPhase.FAILED
        assert result.failed_phase == RequestPhase.VALIDATING
        assert audit_sink.events == []

    @pytest.mark.asyncio
    async def test_invalid_default_roles(self, orchestrator, account_repository):
        result = await orchestrator.create_or_update_account(
            AccountRequest(
                actor="admin",
                account_name="fleet-us",
                default_roles=("VEHICLE_OWNER", "VEHICLE_OWNER", "R99"),
            )
        )

        assert isinstance(result.error, DuplicateOrUnknownRoleError)
        assert result.error.duplicates == ("VEHICLE_OWNER",)
        assert result.error.unknown == ("R99",)
        assert account_repository.saved == []

    @pytest.mark.asyncio
    async def test_child_of_existing_parent(self, orchestrator, active_account):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="child", parent_id=active_account.id)
        )

        assert result.value.parent_id == active_account.id

    @pytest.mark.asyncio
    async def test_missing_parent(self, orchestrator):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="orphan", parent_id=404)
        )

        assert isinstance(result.error, AccountHierarchyError)

    @pytest.mark.asyncio
    async def test_roles_without_scopes_are_noted(self, orchestrator, audit_sink):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="guests", default_roles=("GUEST",))
        )

        assert result.ok
        assert audit_sink.events[0].notes == ("role without scopes: GUEST",)


class TestUpdateAccount:
    @pytest.mark.asyncio
    async def test_self_parent_is_rejected_before_any_save(
        self, orchestrator, active_account, account_repository, unit_of_work
    ):
        # Act
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=active_account.id, parent_id=active_account.id)
        )

        # Assert
        assert isinstance(result.error, AccountHierarchyError)
        assert account_repository.saved == []
        assert unit_of_work.commits == 0
        assert active_account.parent_id is None

    @pytest.mark.asyncio
    async def test_status_only_change(self, orchestrator, active_account, audit_sink):
        result = await orchestrator.create_or_update_account(
            AccountRequest(
                actor="admin", account_id=active_account.id, status=AccountStatus.SUSPENDED
            )
        )

        assert result.value.status == AccountStatus.SUSPENDED
        assert result.value.updated_by == "admin"
        (event,) = audit_sink.events
        assert event.action == AuditAction.ACCOUNT_STATUS_CHANGED
        assert event.details["changes"] == {"status": {"from": "ACTIVE", "to": "SUSPENDED"}}

    @pytest.mark.asyncio
    async def test_rename_and_status_change(self, orchestrator, active_account, audit_sink):
        result = await orchestrator.create_or_update_account(
            AccountRequest(
                actor="admin",
                account_id=active_account.id,
                account_name="fleet-europe",
                status=AccountStatus.BLOCKED,
            )
        )

        assert result.value.account_name == "fleet-europe"
        assert audit_sink.events[0].action == AuditAction.ACCOUNT_UPDATED
        assert set(audit_sink.events[0].details["changes"]) == {"account_name", "status"}

    @pytest.mark.asyncio
    async def test_illegal_transition_leaves_account_untouched(
        self, orchestrator, active_account, account_repository
    ):
        result = await orchestrator.create_or_update_account(
            AccountRequest(
                actor="admin",
                account_id=active_account.id,
                account_name="renamed",
                status=AccountStatus.PENDING,
            )
        )

        assert isinstance(result.error, InvalidTransitionError)
        assert active_account.account_name == "fleet-eu"
        assert account_repository.saved == []

    @pytest.mark.asyncio
    async def test_same_status_is_not_a_change(self, orchestrator, active_account):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=active_account.id, status=AccountStatus.ACTIVE)
        )

        assert result.ok
        assert result.value.status == AccountStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_deleted_account_is_terminal(self, orchestrator, account_repository):
        account = account_repository.add(Account(account_name="gone", status=AccountStatus.DELETED))

        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=account.id, status=AccountStatus.ACTIVE)
        )

        assert isinstance(result.error, TerminalStateError)

    @pytest.mark.asyncio
    async def test_parent_cycle(self, orchestrator, account_repository, active_account):
        child = account_repository.add(
            Account(account_name="child", parent_id=active_account.id, status=AccountStatus.ACTIVE)
        )

        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=active_account.id, parent_id=child.id)
        )

        assert isinstance(result.error, AccountHierarchyError)

    @pytest.mark.asyncio
    async def test_clear_parent(self, orchestrator, account_repository, active_account):
        child = account_repository.add(
            Account(account_name="child", parent_id=active_account.id, status=AccountStatus.ACTIVE)
        )

        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=child.id, clear_parent=True)
        )

        assert result.value.parent_id is None

    @pytest.mark.asyncio
    async def test_unknown_account(self, orchestrator):
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=404, status=AccountStatus.ACTIVE)
        )

        assert isinstance(result.error, AccountNotFoundError)

    @pytest.mark.asyncio
    async def test_default_account_is_protected(self, orchestrator, account_repository):
        default = account_repository.add(
            Account(account_name="default", status=AccountStatus.ACTIVE)
        )

        update = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=default.id, status=AccountStatus.BLOCKED)
        )
        delete = await orchestrator.delete_account(default.id, actor="admin")

        assert isinstance(update.error, DefaultAccountProtectedError)
        assert isinstance(delete.error, DefaultAccountProtectedError)
        assert default.status == AccountStatus.ACTIVE


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_soft_delete(self, orchestrator, active_account, existing_user, audit_sink):
        result = await orchestrator.delete_account(active_account.id, actor="admin")

        assert result.value.status == AccountStatus.DELETED
        assert existing_user.account_id == active_account.id
        (event,) = audit_sink.events
        assert event.action == AuditAction.ACCOUNT_DELETED
        assert event.details["status"] == {"from": "ACTIVE", "to": "DELETED"}

    @pytest.mark.asyncio
    async def test_deleting_twice(self, orchestrator, active_account):
        await orchestrator.delete_account(active_account.id, actor="admin")

        result = await orchestrator.delete_account(active_account.id, actor="admin")

        assert isinstance(result.error, TerminalStateError)


class TestGetAccount:
    @pytest.mark.asyncio
    async def test_account_is_read_back(
        self, orchestrator, active_account, audit_sink, unit_of_work
    ):
        result = await orchestrator.get_account(active_account.id)

        assert result.value.status == AccountStatus.ACTIVE
        assert result.value.default_roles == ["VEHICLE_OWNER"]
        assert len(audit_sink.events) == 0
        assert unit_of_work.commits == 0

    @pytest.mark.asyncio
    async def test_deleted_account_is_still_readable(self, orchestrator, active_account):
        await orchestrator.delete_account(active_account.id, actor="admin")

        result = await orchestrator.get_account(active_account.id)

        assert result.value.is_deleted

    @pytest.mark.asyncio
    async def test_unknown_account(self, orchestrator):
        result = await orchestrator.get_account(404)

        assert isinstance(result.error, AccountNotFoundError)
        assert result.failed_phase == RequestPhase.VALIDATING


class TestPersistenceAndAudit:
    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back(self, orchestrator, unit_of_work, audit_sink):
        # Arrange
        unit_of_work.fail_with = RuntimeError("connection reset")

        # Act
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="fleet-us")
        )

        # Assert
        assert isinstance(result.error, PersistenceError)
        assert result.error.retryable is True
        assert result.failed_phase == RequestPhase.PERSISTING
        assert unit_of_work.rollbacks == 1
        assert audit_sink.events == []

    @pytest.mark.asyncio
    async def test_commit_timeout(self, orchestrator, unit_of_work):
        unit_of_work.fail_with = TimeoutError()

        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="fleet-us")
        )

        assert isinstance(result.error, PersistenceTimeoutError)
        assert unit_of_work.rollbacks == 1

    @pytest.mark.asyncio
    async def test_audit_failure_keeps_the_commit(self, make_orchestrator, unit_of_work):
        # Arrange
        failing_sink = FailingAuditSink()
        orchestrator = make_orchestrator(audit_sink=failing_sink)

        # Act
        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_name="fleet-us")
        )

        # Assert
        assert result.ok
        assert result.audit_recorded is False
        assert unit_of_work.commits == 1
        assert unit_of_work.rollbacks == 0
        assert len(failing_sink.attempts) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_internal_error(
        self, orchestrator, account_repository, active_account, mocker
    ):
        mocker.patch.object(account_repository, "get_by_id", side_effect=KeyError("boom"))

        result = await orchestrator.create_or_update_account(
            AccountRequest(actor="admin", account_id=active_account.id)
        )

        assert type(result.error) is IdentityError
        assert result.error.code == "internal_error"
        assert result.failed_phase == RequestPhase.VALIDATING

    def test_unwrap_raises_the_carried_error(self):
        from identity_core.domain.services.orchestration.results import OperationResult

        result = OperationResult(error=AccountNotFoundError(), phase=RequestPhase.FAILED)

        with pytest.raises(AccountNotFoundError):
            result.unwrap()
