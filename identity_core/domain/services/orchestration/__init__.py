"""Use-case orchestration for accounts and users."""

from .requests import AccountRequest, AddressData, CloudProfileRequest, UserRequest
from .results import OperationResult, PasswordEvaluation, RequestPhase, SessionEligibility
from .user_account_orchestrator import UserAccountOrchestrator

__all__ = [
    "AccountRequest",
    "AddressData",
    "CloudProfileRequest",
    "UserRequest",
    "OperationResult",
    "PasswordEvaluation",
    "RequestPhase",
    "SessionEligibility",
    "UserAccountOrchestrator",
]
