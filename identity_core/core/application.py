"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with middleware, exception handlers, routers and the shared startup components.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from identity_core.adapters.api.v1 import api_router
from identity_core.core.config.settings import settings
from identity_core.core.handlers import register_exception_handlers
from identity_core.core.initialization import IdentityComponents, load_components
from identity_core.core.lifecycle import create_lifespan_manager
from identity_core.core.middleware import configure_middleware


def create_application(components: Optional[IdentityComponents] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The password policy and role catalog are loaded here, once; an invalid
    configuration raises ``ConfigError`` and the application never starts.

    Args:
        components: Preloaded components; loaded from settings when omitted.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )
    app.state.components = components or load_components(settings)

    # Configure middleware
    configure_middleware(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    return app
