"""Account status lifecycle.

Legal transitions::

    PENDING   -> ACTIVE, DELETED
    ACTIVE    -> SUSPENDED, BLOCKED, DELETED
    SUSPENDED -> ACTIVE, BLOCKED, DELETED
    BLOCKED   -> ACTIVE, DELETED
    DELETED   -> (terminal)

Every other pair, including a status to itself, is rejected.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

from identity_core.core.exceptions import InvalidTransitionError, TerminalStateError
from identity_core.domain.entities.account import AccountStatus

TRANSITIONS: Mapping[AccountStatus, FrozenSet[AccountStatus]] = MappingProxyType(
    {
        AccountStatus.PENDING: frozenset({AccountStatus.ACTIVE, AccountStatus.DELETED}),
        AccountStatus.ACTIVE: frozenset(
            {AccountStatus.SUSPENDED, AccountStatus.BLOCKED, AccountStatus.DELETED}
        ),
        AccountStatus.SUSPENDED: frozenset(
            {AccountStatus.ACTIVE, AccountStatus.BLOCKED, AccountStatus.DELETED}
        ),
        AccountStatus.BLOCKED: frozenset({AccountStatus.ACTIVE, AccountStatus.DELETED}),
        AccountStatus.DELETED: frozenset(),
    }
)

SESSION_DENYING_STATUSES: FrozenSet[AccountStatus] = frozenset(
    {AccountStatus.BLOCKED, AccountStatus.DELETED}
)


class AccountStateMachine:
    """Validates account status transitions."""

    @staticmethod
    def can_transition(current: AccountStatus, target: AccountStatus) -> bool:
        return target in TRANSITIONS[current]

    @staticmethod
    def transition(current: AccountStatus, target: AccountStatus) -> AccountStatus:
        """Returns ``target`` if the move from ``current`` is legal.

        Raises:
            TerminalStateError: If ``current`` is DELETED.
            InvalidTransitionError: For any other illegal pair.
        """
        if current == AccountStatus.DELETED:
            raise TerminalStateError(current.value, target.value)
        if target not in TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target.value)
        return target


def denies_new_sessions(status: AccountStatus) -> bool:
    """Whether users of an account in ``status`` are barred from new sessions.

    Evaluated when users are read or mutated; user rows are never rewritten
    when their account changes status.
    """
    return status in SESSION_DENYING_STATUSES
