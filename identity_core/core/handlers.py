"""
Global exception handlers for the FastAPI application.

Every ``IdentityError`` that reaches the HTTP edge (routes unwrap failed
operation results by raising the carried error) is translated here into a
JSON response of the form ``{"detail": ..., "code": ..., ...}``.
"""

from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from identity_core.core.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    AccountStatusGatingError,
    CloudProfileConflictError,
    CloudProfileNotFoundError,
    IdentityError,
    InvalidTransitionError,
    PersistenceError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "STATUS_CODES",
    "status_code_for",
    "identity_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)

# Most specific classes first; the first match wins.
STATUS_CODES: Dict[Type[IdentityError], int] = {
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
    AccountNotFoundError: status.HTTP_404_NOT_FOUND,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    CloudProfileNotFoundError: status.HTTP_404_NOT_FOUND,
    AccountAlreadyExistsError: status.HTTP_409_CONFLICT,
    UserAlreadyExistsError: status.HTTP_409_CONFLICT,
    CloudProfileConflictError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    AccountStatusGatingError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


def status_code_for(exc: IdentityError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    """Handles any `IdentityError`, mapping it to its HTTP status.

    Args:
        request: The incoming `Request` object.
        exc: The `IdentityError` instance.

    Returns:
        A `JSONResponse` carrying the error's structured representation.
    """
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request rejected",
        error=exc.code,
        status_code=status_code,
        path=request.url.path,
    )
    headers = {"Retry-After": "1"} if isinstance(exc, PersistenceError) else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers with the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.add_exception_handler(IdentityError, identity_error_handler)
