"""/roles routes."""

from fastapi import APIRouter

from identity_core.adapters.api.v1.schemas import RoleResolutionOut, RoleResolutionRequest
from identity_core.adapters.api.v1.schemas.mappers import roles_to_response
from identity_core.infrastructure.dependency_injection.identity_dependencies import Orchestrator

router = APIRouter()


@router.post("/resolve", response_model=RoleResolutionOut, summary="Resolve roles to scopes")
async def resolve_roles(
    payload: RoleResolutionRequest, orchestrator: Orchestrator
) -> RoleResolutionOut:
    result = orchestrator.resolve_roles(payload.role_ids)
    return roles_to_response(result.unwrap())
