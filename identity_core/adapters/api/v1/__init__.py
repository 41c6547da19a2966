"""API v1 router configuration.
"""

from fastapi import APIRouter

from .accounts import router as accounts_router
from .cloud_profiles import router as cloud_profiles_router
from .health import router as health_router
from .passwords import router as passwords_router
from .roles import router as roles_router
from .users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(accounts_router, prefix="/accounts", tags=["accounts"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(cloud_profiles_router, prefix="/users", tags=["cloud-profiles"])
api_router.include_router(passwords_router, prefix="/passwords", tags=["passwords"])
api_router.include_router(roles_router, prefix="/roles", tags=["roles"])
