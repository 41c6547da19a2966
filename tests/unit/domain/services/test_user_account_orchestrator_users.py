from datetime import timedelta

import pytest

from identity_core.core.exceptions import (
    AccountStatusGatingError,
    PolicyViolationError,
    UnknownRoleError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.entities.user import UserStatus
from identity_core.domain.security.pii_masking import pii_masker
from identity_core.domain.services.orchestration.requests import AddressData, UserRequest
from identity_core.domain.services.orchestration.results import RequestPhase
from identity_core.domain.services.policy.rule_set import PolicyRuleSet
from identity_core.domain.value_objects.audit import AuditAction
from identity_core.domain.value_objects.policy import EnforcementMode
from tests.conftest import FIXED_NOW

STRONG_PASSWORD = "Str0ng!Passw0rd"


@pytest.fixture
def blocked_account(account_repository):
    return account_repository.add(Account(account_name="blocked", status=AccountStatus.BLOCKED))


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_user_is_created_with_account_default_roles(
        self, orchestrator, active_account, history_repository, audit_sink, unit_of_work
    ):
        # Arrange
        request = UserRequest(
            actor="admin",
            username="jane_doe",
            email="jane@example.com",
            first_name="Jane",
            account_id=active_account.id,
            password=STRONG_PASSWORD,
            addresses=(AddressData(city="Berlin", country="DE"),),
        )

        # Act
        result = await orchestrator.create_or_update_user(request)

        # Assert
        assert result.ok
        user = result.value
        assert user.roles == ["VEHICLE_OWNER"]
        assert user.status == UserStatus.ACTIVE
        assert user.password_hash == f"hashed:{STRONG_PASSWORD}"
        assert user.password_changed_at == FIXED_NOW
        assert [address.city for address in user.addresses] == ["Berlin"]
        assert unit_of_work.commits == 1

        (entry,) = await history_repository.recent(user.id, 10)
        assert entry.password_hash == user.password_hash
        assert entry.changed_at == FIXED_NOW

        (event,) = audit_sink.events
        assert event.action == AuditAction.USER_CREATED
        assert event.details["username"] == pii_masker.mask_username("jane_doe")
        assert event.details["first_name"] == "J***"
        assert event.details["password_changed"] is True
        assert event.details["address_count"] == 1
        assert STRONG_PASSWORD not in repr(event)
        assert "jane@example.com" not in repr(event)

    @pytest.mark.asyncio
    async def test_password_is_not_in_request_repr(self):
        request = UserRequest(actor="admin", username="jane", password=STRONG_PASSWORD)

        assert STRONG_PASSWORD not in repr(request)

    @pytest.mark.asyncio
    async def test_user_without_password(self, orchestrator, active_account, audit_sink):
        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", username="jane_doe", account_id=active_account.id)
        )

        assert result.value.password_hash is None
        assert "password_changed" not in audit_sink.events[0].details

    @pytest.mark.parametrize("status", [AccountStatus.BLOCKED, AccountStatus.DELETED])
    @pytest.mark.asyncio
    async def test_gated_account_rejects_user_before_any_save(
        self, orchestrator, account_repository, user_repository, unit_of_work, audit_sink, status
    ):
        # Arrange
        account = account_repository.add(Account(account_name="gated", status=status))

        # Act
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                username="jane_doe",
                account_id=account.id,
                password=STRONG_PASSWORD,
            )
        )

        # Assert
        assert isinstance(result.error, AccountStatusGatingError)
        assert result.error.status == status.value
        assert user_repository.saved == []
        assert unit_of_work.commits == 0
        assert audit_sink.events == []

    @pytest.mark.asyncio
    async def test_suspended_account_still_accepts_users(self, orchestrator, account_repository):
        account = account_repository.add(
            Account(account_name="suspended", status=AccountStatus.SUSPENDED)
        )

        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", username="jane_doe", account_id=account.id, roles=())
        )

        assert result.ok

    @pytest.mark.asyncio
    async def test_weak_password_reports_every_violation(
        self, orchestrator, active_account, user_repository
    ):
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                username="jane_doe",
                account_id=active_account.id,
                password="abcdefgh",
            )
        )

        assert isinstance(result.error, PolicyViolationError)
        assert [violation.check for violation in result.error.violations] == [
            "minUppercase",
            "minDigits",
            "minSpecial",
        ]
        assert result.failed_phase == RequestPhase.POLICY_CHECK
        assert user_repository.saved == []

    @pytest.mark.asyncio
    async def test_advisory_violations_are_noted_not_blocking(
        self, make_orchestrator, active_account, audit_sink
    ):
        # Arrange
        rule_set = PolicyRuleSet.load(
            {
                "rules": [
                    {"key": "base", "minLength": 8},
                    {"key": "hint", "priority": 1, "required": False, "minLength": 12},
                ]
            }
        )
        orchestrator = make_orchestrator(rule_set=rule_set)

        # Act
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                username="jane_doe",
                account_id=active_account.id,
                password="abcdefghi",
            )
        )

        # Assert
        assert result.ok
        assert audit_sink.events[0].notes == ("advisory password violation: hint.minLength",)

    @pytest.mark.asyncio
    async def test_block_on_any_blocks_advisory_violations(self, make_orchestrator, active_account):
        rule_set = PolicyRuleSet.load(
            {"rules": [{"key": "hint", "required": False, "minLength": 12}]}
        )
        orchestrator = make_orchestrator(
            rule_set=rule_set, enforcement_mode=EnforcementMode.BLOCK_ON_ANY
        )

        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                username="jane_doe",
                account_id=active_account.id,
                password="abcdefghi",
            )
        )

        assert isinstance(result.error, PolicyViolationError)
        assert result.error.violations[0].advisory is True

    @pytest.mark.asyncio
    async def test_username_taken(self, orchestrator, existing_user, active_account):
        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", username=existing_user.username, account_id=active_account.id)
        )

        assert isinstance(result.error, UserAlreadyExistsError)

    @pytest.mark.asyncio
    async def test_gating_is_checked_before_username_uniqueness(
        self, orchestrator, existing_user, blocked_account
    ):
        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", username=existing_user.username, account_id=blocked_account.id)
        )

        assert isinstance(result.error, AccountStatusGatingError)

    @pytest.mark.asyncio
    async def test_unknown_roles(self, orchestrator, active_account):
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                username="jane_doe",
                account_id=active_account.id,
                roles=("VEHICLE_OWNER", "R99"),
            )
        )

        assert isinstance(result.error, UnknownRoleError)
        assert result.error.role_ids == ("R99",)

    @pytest.mark.asyncio
    async def test_missing_fields(self, orchestrator, active_account):
        no_username = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", account_id=active_account.id)
        )
        no_account = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", username="jane_doe")
        )

        assert isinstance(no_username.error, ValidationError)
        assert isinstance(no_account.error, ValidationError)


class TestUpdateUser:
    @pytest.mark.asyncio
    async def test_profile_fields_are_updated(self, orchestrator, existing_user, audit_sink):
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="support",
                user_id=existing_user.id,
                last_name="Doe-Smith",
                status=UserStatus.DEACTIVATED,
            )
        )

        assert result.value.status == UserStatus.DEACTIVATED
        assert result.value.last_name == "Doe-Smith"
        assert result.value.updated_by == "support"
        (event,) = audit_sink.events
        assert event.action == AuditAction.USER_UPDATED
        assert event.details["changes"]["status"] == {"from": "ACTIVE", "to": "DEACTIVATED"}
        assert event.details["changes"]["last_name"] == {"from": None, "to": "D***"}

    @pytest.mark.asyncio
    async def test_recent_password_cannot_be_reused(
        self, make_orchestrator, existing_user, history_repository, user_repository
    ):
        # Arrange
        await history_repository.append(
            existing_user.id, "hashed:Old-Passw0rd!", FIXED_NOW - timedelta(days=30)
        )
        orchestrator = make_orchestrator(
            rule_set=PolicyRuleSet.load({"minLength": 8, "historyDepth": 3})
        )

        # Act
        reused = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, password="Old-Passw0rd!")
        )
        fresh = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, password="New-Passw0rd!")
        )

        # Assert
        assert isinstance(reused.error, PolicyViolationError)
        assert reused.error.violations[0].check == "historyDepth"
        assert fresh.ok
        assert existing_user.password_hash == "hashed:New-Passw0rd!"
        assert len(await history_repository.recent(existing_user.id, 10)) == 2

    @pytest.mark.asyncio
    async def test_username_sequence_is_checked_on_update(self, make_orchestrator, existing_user):
        orchestrator = make_orchestrator(
            rule_set=PolicyRuleSet.load({"minLength": 8, "usernameSequenceLength": 4})
        )

        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, password="xx-john-xx")
        )

        assert isinstance(result.error, PolicyViolationError)

    @pytest.mark.asyncio
    async def test_username_sequence_uses_the_requested_username(
        self, make_orchestrator, existing_user
    ):
        orchestrator = make_orchestrator(
            rule_set=PolicyRuleSet.load({"minLength": 8, "usernameSequenceLength": 4})
        )

        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                user_id=existing_user.id,
                username="maverick",
                password="xx-mave-xx",
            )
        )

        assert isinstance(result.error, PolicyViolationError)
        assert existing_user.username == "john_doe"

    @pytest.mark.asyncio
    async def test_rejected_password_leaves_stored_user_unchanged(
        self, make_orchestrator, existing_user, user_repository, history_repository, unit_of_work
    ):
        # Arrange
        orchestrator = make_orchestrator(
            rule_set=PolicyRuleSet.load({"minLength": 8, "historyDepth": 3})
        )

        # Act
        result = await orchestrator.create_or_update_user(
            UserRequest(
                actor="admin",
                user_id=existing_user.id,
                username="renamed",
                first_name="Johnny",
                roles=("TENANT_ADMIN",),
                addresses=(AddressData(city="Paris", country="FR"),),
                password="short",
            )
        )

        # Assert
        assert isinstance(result.error, PolicyViolationError)
        assert result.failed_phase == RequestPhase.POLICY_CHECK
        stored = await user_repository.get_by_id(existing_user.id)
        assert stored.username == "john_doe"
        assert stored.first_name is None
        assert stored.roles == ["VEHICLE_OWNER"]
        assert len(stored.addresses) == 0
        assert stored.updated_by is None
        assert stored.password_hash == "hashed:Old-Passw0rd!"
        assert user_repository.saved == []
        assert await history_repository.recent(existing_user.id, 10) == []
        assert unit_of_work.commits == 0

    @pytest.mark.asyncio
    async def test_password_cannot_be_changed_again_too_soon(
        self, make_orchestrator, existing_user
    ):
        orchestrator = make_orchestrator(
            rule_set=PolicyRuleSet.load({"minLength": 8, "passwordUpdateTimeIntervalSec": 60})
        )
        existing_user.password_changed_at = FIXED_NOW - timedelta(seconds=10)

        too_soon = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, password="New-Passw0rd!")
        )
        existing_user.password_changed_at = FIXED_NOW - timedelta(minutes=5)
        later = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, password="New-Passw0rd!")
        )

        assert isinstance(too_soon.error, PolicyViolationError)
        (violation,) = too_soon.error.violations
        assert violation.check == "passwordUpdateTimeIntervalSec"
        assert later.ok
        assert existing_user.password_changed_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_moving_to_a_gated_account(
        self, orchestrator, existing_user, blocked_account, user_repository
    ):
        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, account_id=blocked_account.id)
        )

        assert isinstance(result.error, AccountStatusGatingError)
        assert user_repository.saved == []

    @pytest.mark.asyncio
    async def test_user_of_blocked_account_cannot_be_updated(
        self, orchestrator, existing_user, active_account
    ):
        active_account.status = AccountStatus.BLOCKED

        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=existing_user.id, first_name="Johnny")
        )

        assert isinstance(result.error, AccountStatusGatingError)

    @pytest.mark.asyncio
    async def test_unknown_user(self, orchestrator):
        result = await orchestrator.create_or_update_user(
            UserRequest(actor="admin", user_id=404, first_name="Nobody")
        )

        assert isinstance(result.error, UserNotFoundError)


class TestQueries:
    def test_evaluate_password_only(self, orchestrator, unit_of_work, audit_sink):
        result = orchestrator.evaluate_password_only("abcdefgh")

        assert result.ok
        assert result.value.blocked is True
        assert len(result.value.violations) == 3
        assert unit_of_work.commits == 0
        assert audit_sink.events == []

    def test_resolve_roles(self, orchestrator):
        ok = orchestrator.resolve_roles(["VEHICLE_OWNER"])
        unknown = orchestrator.resolve_roles(["VEHICLE_OWNER", "R99"])

        assert ok.value == {"VEHICLE_OWNER": frozenset({"vehicle:read", "vehicle:write"})}
        assert isinstance(unknown.error, UnknownRoleError)

    @pytest.mark.asyncio
    async def test_active_user_is_eligible(self, orchestrator, existing_user):
        result = await orchestrator.check_session_eligibility(existing_user.id)

        assert result.value.eligible is True
        assert result.value.reasons == ()

    @pytest.mark.asyncio
    async def test_account_status_cascades_at_read_time(
        self, orchestrator, existing_user, active_account
    ):
        active_account.status = AccountStatus.BLOCKED
        existing_user.status = UserStatus.DEACTIVATED

        result = await orchestrator.check_session_eligibility(existing_user.id)

        assert result.value.eligible is False
        assert result.value.reasons == ("account_blocked", "user_deactivated")
        assert existing_user.status == UserStatus.DEACTIVATED

    @pytest.mark.asyncio
    async def test_expired_password(self, make_orchestrator, existing_user):
        existing_user.password_changed_at = FIXED_NOW - timedelta(days=40)
        orchestrator = make_orchestrator(rule_set=PolicyRuleSet.load({"expiryDays": 30}))

        result = await orchestrator.check_session_eligibility(existing_user.id)

        assert result.value.reasons == ("password_expired",)

    @pytest.mark.asyncio
    async def test_unknown_user(self, orchestrator):
        result = await orchestrator.check_session_eligibility(404)

        assert isinstance(result.error, UserNotFoundError)
