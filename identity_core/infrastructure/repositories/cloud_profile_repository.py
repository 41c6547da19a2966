"""Cloud profile repository."""

from typing import List, Optional

from sqlalchemy import select

from identity_core.domain.entities.cloud_profile import CloudProfile, CloudProfileStatus
from identity_core.domain.interfaces.repositories import ICloudProfileRepository
from identity_core.infrastructure.repositories.base import SQLRepository


class CloudProfileRepository(SQLRepository, ICloudProfileRepository):
    async def get_by_id(self, profile_id: int) -> Optional[CloudProfile]:
        async with self._translate_errors("get_by_id", profile_id=profile_id):
            result = await self.db_session.execute(
                select(CloudProfile).where(CloudProfile.id == profile_id)
            )
            return result.scalars().first()

    async def get_active_by_business_key(self, business_key: str) -> Optional[CloudProfile]:
        async with self._translate_errors("get_active_by_business_key"):
            result = await self.db_session.execute(
                select(CloudProfile).where(
                    CloudProfile.business_key == business_key,
                    CloudProfile.status == CloudProfileStatus.ACTIVE.value,
                )
            )
            return result.scalars().first()

    async def list_active_by_user(self, user_id: int) -> List[CloudProfile]:
        async with self._translate_errors("list_active_by_user", user_id=user_id):
            result = await self.db_session.execute(
                select(CloudProfile)
                .where(
                    CloudProfile.user_id == user_id,
                    CloudProfile.status == CloudProfileStatus.ACTIVE.value,
                )
                .order_by(CloudProfile.profile_name)
            )
            return list(result.scalars().all())

    async def save(self, profile: CloudProfile) -> CloudProfile:
        async with self._translate_errors("save", profile_id=profile.id):
            self.db_session.add(profile)
            await self.db_session.flush()
        return profile
