"""/accounts routes."""

import structlog
from fastapi import APIRouter, status

from identity_core.adapters.api.v1.dependencies import Actor, CorrelationId
from identity_core.adapters.api.v1.schemas import (
    AccountCreateRequest,
    AccountOut,
    AccountUpdateRequest,
)
from identity_core.adapters.api.v1.schemas.mappers import (
    account_to_response,
    to_account_create_request,
    to_account_update_request,
)
from identity_core.infrastructure.dependency_injection.identity_dependencies import Orchestrator

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=AccountOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    payload: AccountCreateRequest,
    orchestrator: Orchestrator,
    actor: Actor,
    correlation_id: CorrelationId,
) -> AccountOut:
    """Creates an account in PENDING (or the requested reachable status)."""
    result = await orchestrator.create_or_update_account(
        to_account_create_request(payload, actor, correlation_id)
    )
    return account_to_response(result.unwrap())


@router.get("/{account_id}", response_model=AccountOut, summary="Read an account")
async def get_account(
    account_id: int,
    orchestrator: Orchestrator,
    correlation_id: CorrelationId,
) -> AccountOut:
    result = await orchestrator.get_account(account_id, correlation_id)
    return account_to_response(result.unwrap())


@router.put("/{account_id}", response_model=AccountOut, summary="Update an account")
async def update_account(
    account_id: int,
    payload: AccountUpdateRequest,
    orchestrator: Orchestrator,
    actor: Actor,
    correlation_id: CorrelationId,
) -> AccountOut:
    result = await orchestrator.create_or_update_account(
        to_account_update_request(account_id, payload, actor, correlation_id)
    )
    return account_to_response(result.unwrap())


@router.delete("/{account_id}", response_model=AccountOut, summary="Soft-delete an account")
async def delete_account(
    account_id: int,
    orchestrator: Orchestrator,
    actor: Actor,
    correlation_id: CorrelationId,
) -> AccountOut:
    """Moves the account to DELETED; the row is kept."""
    result = await orchestrator.delete_account(account_id, actor, correlation_id)
    return account_to_response(result.unwrap())
