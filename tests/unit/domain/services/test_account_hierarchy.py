import pytest

from identity_core.core.exceptions import AccountHierarchyError
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.services.account.hierarchy import AccountHierarchy


@pytest.fixture
def chain(account_repository):
    """root(1) <- mid(2) <- leaf(3)"""
    root = account_repository.add(Account(id=1, account_name="root", status=AccountStatus.ACTIVE))
    mid = account_repository.add(
        Account(id=2, account_name="mid", parent_id=1, status=AccountStatus.ACTIVE)
    )
    leaf = account_repository.add(
        Account(id=3, account_name="leaf", parent_id=2, status=AccountStatus.ACTIVE)
    )
    return root, mid, leaf


class TestValidateParent:
    @pytest.mark.asyncio
    async def test_no_parent_is_always_valid(self, account_repository):
        await AccountHierarchy(account_repository).validate_parent(5, None)

    @pytest.mark.asyncio
    async def test_valid_parent(self, account_repository, chain):
        await AccountHierarchy(account_repository).validate_parent(None, 3)

    @pytest.mark.asyncio
    async def test_self_parent(self, account_repository, chain):
        with pytest.raises(AccountHierarchyError, match="its own parent"):
            await AccountHierarchy(account_repository).validate_parent(2, 2)

    @pytest.mark.asyncio
    async def test_descendant_as_parent_is_a_cycle(self, account_repository, chain):
        with pytest.raises(AccountHierarchyError, match="cycle"):
            await AccountHierarchy(account_repository).validate_parent(1, 3)

    @pytest.mark.asyncio
    async def test_missing_parent(self, account_repository, chain):
        with pytest.raises(AccountHierarchyError, match="does not exist"):
            await AccountHierarchy(account_repository).validate_parent(None, 99)

    @pytest.mark.asyncio
    async def test_deleted_parent(self, account_repository, chain):
        chain[0].status = AccountStatus.DELETED

        with pytest.raises(AccountHierarchyError, match="deleted"):
            await AccountHierarchy(account_repository).validate_parent(None, 1)

    @pytest.mark.asyncio
    async def test_depth_limit(self, account_repository, chain):
        hierarchy = AccountHierarchy(account_repository, max_depth=2)

        with pytest.raises(AccountHierarchyError, match="maximum depth of 2"):
            await hierarchy.validate_parent(None, 3)

    @pytest.mark.asyncio
    async def test_stored_cycle_is_detected(self, account_repository):
        account_repository.add(Account(id=1, account_name="a", parent_id=2))
        account_repository.add(Account(id=2, account_name="b", parent_id=1))

        with pytest.raises(AccountHierarchyError):
            await AccountHierarchy(account_repository).validate_parent(None, 1)


class TestAncestors:
    @pytest.mark.asyncio
    async def test_ancestors_are_listed_up_to_the_root(self, account_repository, chain):
        ancestors = await AccountHierarchy(account_repository).ancestors_of(chain[2])

        assert ancestors == [3, 2, 1]

    def test_max_depth_must_be_positive(self, account_repository):
        with pytest.raises(ValueError):
            AccountHierarchy(account_repository, max_depth=0)
