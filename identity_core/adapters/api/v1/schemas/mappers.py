"""Explicit mapping between wire schemas and domain structures.

Every field is copied by hand in both directions; nothing is mapped by
reflection.
"""

from typing import Dict, FrozenSet, List, Optional, Union

from identity_core.adapters.api.v1.schemas.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    AddressPayload,
    CloudProfileCreateRequest,
    CloudProfileUpdateRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from identity_core.adapters.api.v1.schemas.responses import (
    AccountOut,
    AddressOut,
    CloudProfileOut,
    PasswordEvaluationOut,
    RoleResolutionOut,
    SessionEligibilityOut,
    UserOut,
    ViolationOut,
)
from identity_core.domain.entities.account import Account
from identity_core.domain.entities.cloud_profile import CloudProfile
from identity_core.domain.entities.user import User, UserAddress
from identity_core.domain.services.orchestration.requests import (
    AccountRequest,
    AddressData,
    CloudProfileRequest,
    UserRequest,
)
from identity_core.domain.services.orchestration.results import (
    PasswordEvaluation,
    SessionEligibility,
)
from identity_core.domain.value_objects.policy import PolicyViolation


def _optional_tuple(values: Optional[List[str]]) -> Optional[tuple]:
    return tuple(values) if values is not None else None


def to_address_data(payload: AddressPayload) -> AddressData:
    return AddressData(
        country=payload.country,
        state=payload.state,
        city=payload.city,
        address1=payload.address1,
        address2=payload.address2,
        postal_code=payload.postal_code,
        time_zone=payload.time_zone,
    )


def _addresses(payloads: Optional[List[AddressPayload]]) -> Optional[tuple]:
    if payloads is None:
        return None
    return tuple(to_address_data(payload) for payload in payloads)


def to_account_create_request(
    payload: AccountCreateRequest, actor: str, correlation_id: Optional[str] = None
) -> AccountRequest:
    return AccountRequest(
        actor=actor,
        account_name=payload.account_name,
        parent_id=payload.parent_id,
        status=payload.status,
        default_roles=_optional_tuple(payload.default_roles),
        correlation_id=correlation_id,
    )


def to_account_update_request(
    account_id: int,
    payload: AccountUpdateRequest,
    actor: str,
    correlation_id: Optional[str] = None,
) -> AccountRequest:
    return AccountRequest(
        actor=actor,
        account_id=account_id,
        account_name=payload.account_name,
        parent_id=payload.parent_id,
        clear_parent=payload.clear_parent,
        status=payload.status,
        default_roles=_optional_tuple(payload.default_roles),
        correlation_id=correlation_id,
    )


def to_user_create_request(
    payload: UserCreateRequest, actor: str, correlation_id: Optional[str] = None
) -> UserRequest:
    return UserRequest(
        actor=actor,
        username=payload.username,
        email=str(payload.email) if payload.email is not None else None,
        first_name=payload.first_name,
        last_name=payload.last_name,
        account_id=payload.account_id,
        status=payload.status,
        password=payload.password,
        roles=_optional_tuple(payload.roles),
        addresses=_addresses(payload.addresses),
        correlation_id=correlation_id,
    )


def to_user_update_request(
    user_id: int, payload: UserUpdateRequest, actor: str, correlation_id: Optional[str] = None
) -> UserRequest:
    return UserRequest(
        actor=actor,
        user_id=user_id,
        username=payload.username,
        email=str(payload.email) if payload.email is not None else None,
        first_name=payload.first_name,
        last_name=payload.last_name,
        account_id=payload.account_id,
        status=payload.status,
        password=payload.password,
        roles=_optional_tuple(payload.roles),
        addresses=_addresses(payload.addresses),
        correlation_id=correlation_id,
    )


def to_cloud_profile_request(
    user_id: int,
    profile_name: str,
    payload: Union[CloudProfileCreateRequest, CloudProfileUpdateRequest],
    actor: str,
    correlation_id: Optional[str] = None,
) -> CloudProfileRequest:
    """Maps a create or update payload; the name comes from the path on update."""
    return CloudProfileRequest(
        actor=actor,
        user_id=user_id,
        profile_name=profile_name,
        profile_data=dict(payload.profile_data),
        correlation_id=correlation_id,
    )


def account_to_response(account: Account) -> AccountOut:
    return AccountOut(
        id=account.id,
        account_name=account.account_name,
        parent_id=account.parent_id,
        status=account.status.value,
        default_roles=list(account.default_roles),
        created_by=account.created_by,
        created_at=account.created_at,
        updated_by=account.updated_by,
        updated_at=account.updated_at,
    )


def address_to_response(address: UserAddress) -> AddressOut:
    return AddressOut(
        country=address.country,
        state=address.state,
        city=address.city,
        address1=address.address1,
        address2=address.address2,
        postal_code=address.postal_code,
        time_zone=address.time_zone,
    )


def user_to_response(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        account_id=user.account_id,
        status=user.status.value,
        roles=list(user.roles),
        addresses=[address_to_response(address) for address in user.addresses],
        password_changed_at=user.password_changed_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def violation_to_response(violation: PolicyViolation) -> ViolationOut:
    return ViolationOut(
        rule_key=violation.rule_key,
        check=violation.check,
        message=violation.message,
        offending=list(violation.offending),
        advisory=violation.advisory,
    )


def evaluation_to_response(evaluation: PasswordEvaluation) -> PasswordEvaluationOut:
    return PasswordEvaluationOut(
        blocked=evaluation.blocked,
        violations=[violation_to_response(violation) for violation in evaluation.violations],
    )


def roles_to_response(resolved: Dict[str, FrozenSet[str]]) -> RoleResolutionOut:
    return RoleResolutionOut(roles={role: sorted(scopes) for role, scopes in resolved.items()})


def eligibility_to_response(eligibility: SessionEligibility) -> SessionEligibilityOut:
    return SessionEligibilityOut(
        user_id=eligibility.user_id,
        eligible=eligibility.eligible,
        reasons=list(eligibility.reasons),
    )


def cloud_profile_to_response(profile: CloudProfile) -> CloudProfileOut:
    return CloudProfileOut(
        id=profile.id,
        user_id=profile.user_id,
        profile_name=profile.profile_name,
        profile_data=dict(profile.profile_data),
        status=getattr(profile.status, "value", profile.status),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )
