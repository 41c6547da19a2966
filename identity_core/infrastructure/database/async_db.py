"""
Asynchronous database utilities.

The engine and session factory are created lazily on first use, so importing
this module never opens a connection or requires the database driver.

**Security Note**: configure SSL/TLS in DATABASE_URL when connecting over
untrusted networks, and never log the connection URL.

Key Components:
    - get_engine: The asynchronous SQLAlchemy engine.
    - get_session_factory: Factory for request sessions.
    - get_async_db: FastAPI dependency yielding one session per request.
    - create_async_db_and_tables: Creates the schema (development and tests).
    - dispose_engine: Releases pooled connections on shutdown.
"""

import urllib.parse as urlparse
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from identity_core.core.config.settings import settings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def _build_async_url(database_url: str) -> str:
    """
    Builds the asyncpg URL from the configured database URL.

    The psycopg2 driver is swapped for asyncpg and ``sslmode`` is dropped from
    the query string, since asyncpg does not accept it.
    """
    async_url = database_url.replace("postgresql+psycopg2", "postgresql+asyncpg")
    parsed = urlparse.urlparse(async_url)
    query = dict(urlparse.parse_qsl(parsed.query))
    query.pop("sslmode", None)
    parsed = parsed._replace(query=urlparse.urlencode(query))
    return urlparse.urlunparse(parsed)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        url = make_url(_build_async_url(settings.DATABASE_URL))
        pool_options = {}
        if url.get_backend_name() == "postgresql":
            pool_options = {
                "pool_size": settings.POSTGRES_POOL_SIZE,
                "max_overflow": settings.POSTGRES_MAX_OVERFLOW,
                "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
            }
        _engine = create_async_engine(url, echo=False, pool_pre_ping=True, **pool_options)
        logger.info("Async database engine created")
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    Any exception raised while the session is in use rolls the transaction
    back before it propagates; the session is always closed.
    """
    async with get_session_factory()() as session:
        logger.debug("Async database session created")
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.error("Async database session rollback due to error")
            raise
        finally:
            await session.close()
            logger.debug("Async database session closed")


async def create_async_db_and_tables() -> None:
    """Creates all tables registered on ``SQLModel.metadata``."""
    # Register every table model on the metadata.
    import identity_core.domain.entities  # noqa: F401

    logger.info("Creating async database tables")
    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Async database tables created")


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Async database engine disposed")
    _engine = None
    _session_factory = None
