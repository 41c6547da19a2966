from .cloud_profile_service import CloudProfileService

__all__ = ["CloudProfileService"]
