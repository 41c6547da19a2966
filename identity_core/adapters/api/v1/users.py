"""/users routes."""

from fastapi import APIRouter, status

from identity_core.adapters.api.v1.dependencies import Actor, CorrelationId
from identity_core.adapters.api.v1.schemas import (
    SessionEligibilityOut,
    UserCreateRequest,
    UserOut,
    UserUpdateRequest,
)
from identity_core.adapters.api.v1.schemas.mappers import (
    eligibility_to_response,
    to_user_create_request,
    to_user_update_request,
    user_to_response,
)
from identity_core.infrastructure.dependency_injection.identity_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    payload: UserCreateRequest,
    orchestrator: Orchestrator,
    actor: Actor,
    correlation_id: CorrelationId,
) -> UserOut:
    """Creates a user; a password in the payload is checked against the policy.

    A policy failure returns every violation at once.
    """
    result = await orchestrator.create_or_update_user(
        to_user_create_request(payload, actor, correlation_id)
    )
    return user_to_response(result.unwrap())


@router.put("/{user_id}", response_model=UserOut, summary="Update a user")
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    orchestrator: Orchestrator,
    actor: Actor,
    correlation_id: CorrelationId,
) -> UserOut:
    result = await orchestrator.create_or_update_user(
        to_user_update_request(user_id, payload, actor, correlation_id)
    )
    return user_to_response(result.unwrap())


@router.get(
    "/{user_id}/session-eligibility",
    response_model=SessionEligibilityOut,
    summary="Check whether a user may open new sessions",
)
async def get_session_eligibility(
    user_id: int, orchestrator: Orchestrator, correlation_id: CorrelationId
) -> SessionEligibilityOut:
    result = await orchestrator.check_session_eligibility(user_id, correlation_id)
    return eligibility_to_response(result.unwrap())
