"""/passwords routes."""

from fastapi import APIRouter

from identity_core.adapters.api.v1.schemas import PasswordEvaluationOut, PasswordEvaluationRequest
from identity_core.adapters.api.v1.schemas.mappers import evaluation_to_response
from identity_core.infrastructure.dependency_injection.identity_dependencies import Orchestrator

router = APIRouter()


@router.post(
    "/evaluate",
    response_model=PasswordEvaluationOut,
    summary="Evaluate a candidate password against the policy",
)
async def evaluate_password(
    payload: PasswordEvaluationRequest, orchestrator: Orchestrator
) -> PasswordEvaluationOut:
    """Returns every violation without storing anything. History is not checked."""
    result = orchestrator.evaluate_password_only(payload.password, payload.username)
    return evaluation_to_response(result.unwrap())
