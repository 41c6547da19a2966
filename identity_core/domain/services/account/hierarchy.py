"""Write-time validation of account parent references.

Accounts reference their parent by identifier only. A new or changed
reference is accepted only when walking up from the proposed parent reaches
a root within the configured depth without meeting the account itself, so a
cycle can never be stored.
"""

from typing import List, Optional

import structlog

from identity_core.core.exceptions import AccountHierarchyError
from identity_core.domain.entities.account import Account, AccountStatus
from identity_core.domain.interfaces.repositories import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountHierarchy:
    """Checks parent references against the stored account tree.

    Args:
        account_repository: Source of ancestor accounts.
        max_depth: Maximum number of ancestors an account may have.
    """

    def __init__(self, account_repository: IAccountRepository, max_depth: int = 10):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._accounts = account_repository
        self._max_depth = max_depth

    async def validate_parent(self, account_id: Optional[int], parent_id: Optional[int]) -> None:
        """Validates ``parent_id`` as the parent of ``account_id``.

        Args:
            account_id: The account being written, or None when creating.
            parent_id: The proposed parent, or None for a root account.

        Raises:
            AccountHierarchyError: If the parent is the account itself, is
                missing or DELETED, is a descendant of the account, or makes
                the chain deeper than ``max_depth``.
        """
        if parent_id is None:
            return
        if account_id is not None and parent_id == account_id:
            raise AccountHierarchyError(f"Account {account_id} cannot be its own parent")

        parent = await self._accounts.get_by_id(parent_id)
        if parent is None:
            raise AccountHierarchyError(f"Parent account {parent_id} does not exist")
        if parent.status == AccountStatus.DELETED:
            raise AccountHierarchyError(f"Parent account {parent_id} is deleted")

        await self.ancestors_of(parent, stop_at=account_id)

    async def ancestors_of(self, account: Account, stop_at: Optional[int] = None) -> List[int]:
        """Returns the ids from ``account`` up to its root, inclusive.

        The walk is bounded by ``max_depth``; reaching ``stop_at`` on the way
        up means the proposed reference would close a cycle.
        """
        chain: List[int] = []
        current: Optional[Account] = account
        while current is not None:
            if stop_at is not None and current.id == stop_at:
                logger.warning(
                    "Account parent cycle rejected", account_id=stop_at, chain=chain + [current.id]
                )
                raise AccountHierarchyError(
                    f"Parent reference would create a cycle through account {stop_at}"
                )
            if current.id in chain:
                # Stored data already holds a cycle; refuse to extend it.
                raise AccountHierarchyError(f"Account tree contains a cycle at {current.id}")
            chain.append(current.id)
            if len(chain) > self._max_depth:
                raise AccountHierarchyError(
                    f"Account hierarchy would exceed the maximum depth of {self._max_depth}"
                )
            if current.parent_id is None:
                break
            current = await self._accounts.get_by_id(current.parent_id)
        return chain
