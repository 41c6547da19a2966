"""Account lifecycle and hierarchy rules."""

from .account_state import AccountStateMachine, denies_new_sessions
from .hierarchy import AccountHierarchy

__all__ = ["AccountHierarchy", "AccountStateMachine", "denies_new_sessions"]
