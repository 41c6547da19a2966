import json
from unittest.mock import MagicMock

import pytest

from identity_core.core.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    AccountStatusGatingError,
    CloudProfileConflictError,
    ConfigError,
    IdentityError,
    PersistenceError,
    PersistenceTimeoutError,
    PolicyViolationError,
    TerminalStateError,
    UnknownRoleError,
    UserNotFoundError,
)
from identity_core.core.handlers import identity_error_handler, status_code_for


@pytest.mark.parametrize(
    "error,status_code",
    [
        (PolicyViolationError([]), 400),
        (UnknownRoleError(["X"]), 400),
        (AccountNotFoundError(), 404),
        (UserNotFoundError(), 404),
        (AccountAlreadyExistsError("taken"), 409),
        (CloudProfileConflictError("taken"), 409),
        (TerminalStateError("DELETED", "ACTIVE"), 409),
        (AccountStatusGatingError(1, "BLOCKED"), 409),
        (PersistenceError(), 503),
        (PersistenceTimeoutError(), 503),
        (ConfigError("broken"), 500),
        (IdentityError("boom", "internal_error"), 500),
    ],
)
def test_status_code_mapping(error, status_code):
    assert status_code_for(error) == status_code


@pytest.mark.asyncio
async def test_handler_renders_error_body():
    # Arrange
    request = MagicMock()
    request.url.path = "/api/v1/users"

    # Act
    response = await identity_error_handler(request, UnknownRoleError(["R99"]))

    # Assert
    assert response.status_code == 400
    body = json.loads(response.body)
    assert body["code"] == "unknown_role"
    assert body["role_ids"] == ["R99"]


@pytest.mark.asyncio
async def test_persistence_errors_advertise_retry():
    request = MagicMock()
    request.url.path = "/api/v1/accounts"

    response = await identity_error_handler(request, PersistenceError())

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
