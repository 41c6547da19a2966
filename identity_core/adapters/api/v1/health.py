"""/health route."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy import text

from identity_core.adapters.api.v1.schemas import HealthResponse
from identity_core.core.config.settings import settings
from identity_core.core.logging import logger
from identity_core.infrastructure.database import async_db

router = APIRouter()


async def check_database_health() -> Dict[str, Any]:
    """Check database connection health."""
    try:
        async with async_db.get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": type(e).__name__}


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Reports service status; ``degraded`` when the database is unreachable."""
    db_health = await check_database_health()
    return HealthResponse(
        status="ok" if db_health["status"] == "healthy" else "degraded",
        env=settings.APP_ENV,
        version=settings.VERSION,
        services={"database": db_health},
        timestamp=datetime.now(timezone.utc),
    )
