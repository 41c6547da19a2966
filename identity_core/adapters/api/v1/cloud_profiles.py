"""/users/{user_id}/cloud-profiles routes."""

from typing import List

from fastapi import APIRouter, status

from identity_core.adapters.api.v1.dependencies import Actor, CorrelationId
from identity_core.adapters.api.v1.schemas import (
    CloudProfileCreateRequest,
    CloudProfileOut,
    CloudProfileUpdateRequest,
)
from identity_core.adapters.api.v1.schemas.mappers import (
    cloud_profile_to_response,
    to_cloud_profile_request,
)
from identity_core.infrastructure.dependency_injection.identity_dependencies import ProfileService

router = APIRouter()


@router.get("/{user_id}/cloud-profiles", response_model=List[CloudProfileOut])
async def list_cloud_profiles(
    user_id: int, service: ProfileService, correlation_id: CorrelationId
) -> List[CloudProfileOut]:
    result = await service.get_profiles(user_id, correlation_id)
    return [cloud_profile_to_response(profile) for profile in result.unwrap()]


@router.post(
    "/{user_id}/cloud-profiles",
    response_model=CloudProfileOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_cloud_profile(
    user_id: int,
    payload: CloudProfileCreateRequest,
    service: ProfileService,
    actor: Actor,
    correlation_id: CorrelationId,
) -> CloudProfileOut:
    result = await service.add_profile(
        to_cloud_profile_request(user_id, payload.profile_name, payload, actor, correlation_id)
    )
    return cloud_profile_to_response(result.unwrap())


@router.put("/{user_id}/cloud-profiles/{profile_name}", response_model=CloudProfileOut)
async def update_cloud_profile(
    user_id: int,
    profile_name: str,
    payload: CloudProfileUpdateRequest,
    service: ProfileService,
    actor: Actor,
    correlation_id: CorrelationId,
) -> CloudProfileOut:
    result = await service.update_profile(
        to_cloud_profile_request(user_id, profile_name, payload, actor, correlation_id)
    )
    return cloud_profile_to_response(result.unwrap())


@router.delete("/{user_id}/cloud-profiles/{profile_name}", response_model=CloudProfileOut)
async def delete_cloud_profile(
    user_id: int,
    profile_name: str,
    service: ProfileService,
    actor: Actor,
    correlation_id: CorrelationId,
) -> CloudProfileOut:
    result = await service.delete_profile(user_id, profile_name, actor, correlation_id)
    return cloud_profile_to_response(result.unwrap())
