from .requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    AddressPayload,
    CloudProfileCreateRequest,
    CloudProfileUpdateRequest,
    PasswordEvaluationRequest,
    RoleResolutionRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from .responses import (
    AccountOut,
    CloudProfileOut,
    HealthResponse,
    PasswordEvaluationOut,
    RoleResolutionOut,
    SessionEligibilityOut,
    UserOut,
)

__all__ = [
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "AddressPayload",
    "CloudProfileCreateRequest",
    "CloudProfileUpdateRequest",
    "PasswordEvaluationRequest",
    "RoleResolutionRequest",
    "UserCreateRequest",
    "UserUpdateRequest",
    "AccountOut",
    "CloudProfileOut",
    "HealthResponse",
    "PasswordEvaluationOut",
    "RoleResolutionOut",
    "SessionEligibilityOut",
    "UserOut",
]
