from __future__ import annotations

"""Centralized, structured exception hierarchy for identity-core.

Each exception carries a machine-readable ``code`` for programmatic handling
and a human-readable ``message`` for logging and API responses. The hierarchy
maps cleanly onto HTTP status codes in ``core.handlers``; the orchestrator
converts raised errors into failed ``OperationResult`` values so that no
domain error escapes a public operation.
"""

from typing import TYPE_CHECKING, Final, Iterable, Sequence, Tuple

if TYPE_CHECKING:
    from identity_core.domain.value_objects.policy import PolicyViolation

__all__: Final = [
    "IdentityError",
    "ConfigError",
    "ValidationError",
    "InvalidTransitionError",
    "TerminalStateError",
    "AccountStatusGatingError",
    "AccountHierarchyError",
    "DefaultAccountProtectedError",
    "AccountAlreadyExistsError",
    "UserAlreadyExistsError",
    "CloudProfileConflictError",
    "AccountNotFoundError",
    "UserNotFoundError",
    "CloudProfileNotFoundError",
    "PolicyViolationError",
    "UnknownRoleError",
    "DuplicateOrUnknownRoleError",
    "PersistenceError",
    "PersistenceTimeoutError",
    "AuditWriteError",
]


class IdentityError(Exception):
    """Base exception class for all custom errors in identity-core.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "identity_error"

    def __init__(self, message: str, code: str = "identity_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        """Structured representation used by result values and API handlers."""
        return {"detail": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------


class ConfigError(IdentityError):
    """Raised when policy or role configuration is invalid.

    This is fatal at startup: the application refuses to serve requests with a
    rule set or role catalog it cannot interpret.
    """

    def __init__(self, message: str, code: str = "config_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Validation errors (typically map to 400 Bad Request)
# ---------------------------------------------------------------------------


class ValidationError(IdentityError):
    """Raised for general input validation failures."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class AccountHierarchyError(ValidationError):
    """Raised when a parent reference would break the account tree.

    Covers self-parenting, cycles, missing or deleted parents and chains
    deeper than the configured maximum depth.
    """

    def __init__(self, message: str, code: str = "invalid_parent"):
        super().__init__(message, code)


class DefaultAccountProtectedError(ValidationError):
    """Raised when a mutation targets the configured default account."""

    def __init__(self, message: str, code: str = "default_account_protected"):
        super().__init__(message, code)


class PolicyViolationError(ValidationError):
    """Raised when a candidate password fails the password policy.

    The error always carries the complete, ordered violation list produced by
    a single evaluation pass, never only the first failure.
    """

    def __init__(
        self,
        violations: Sequence["PolicyViolation"],
        message: str = "Password does not satisfy the password policy",
        code: str = "password_policy_violation",
    ):
        super().__init__(message, code)
        self.violations: Tuple["PolicyViolation", ...] = tuple(violations)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["violations"] = [violation.to_dict() for violation in self.violations]
        return data


class UnknownRoleError(ValidationError):
    """Raised when one or more role identifiers cannot be resolved.

    All unresolved identifiers are reported together.
    """

    def __init__(self, role_ids: Iterable[str], code: str = "unknown_role"):
        self.role_ids: Tuple[str, ...] = tuple(role_ids)
        super().__init__(f"Unknown roles: {', '.join(self.role_ids)}", code)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["role_ids"] = list(self.role_ids)
        return data


class DuplicateOrUnknownRoleError(ValidationError):
    """Raised when account default roles contain duplicates or unknown ids."""

    def __init__(
        self,
        duplicates: Iterable[str] = (),
        unknown: Iterable[str] = (),
        code: str = "duplicate_or_unknown_role",
    ):
        self.duplicates: Tuple[str, ...] = tuple(duplicates)
        self.unknown: Tuple[str, ...] = tuple(unknown)
        parts = []
        if self.duplicates:
            parts.append(f"duplicate roles: {', '.join(self.duplicates)}")
        if self.unknown:
            parts.append(f"unknown roles: {', '.join(self.unknown)}")
        super().__init__("Invalid default roles (" + "; ".join(parts) + ")", code)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["duplicates"] = list(self.duplicates)
        data["unknown"] = list(self.unknown)
        return data


# ---------------------------------------------------------------------------
# State errors (typically map to 409 Conflict)
# ---------------------------------------------------------------------------


class InvalidTransitionError(IdentityError):
    """Raised for an account status change not allowed by the state machine."""

    def __init__(self, current: str, target: str, code: str = "invalid_transition"):
        self.current = current
        self.target = target
        super().__init__(f"Account status cannot change from {current} to {target}", code)


class TerminalStateError(InvalidTransitionError):
    """Raised for any transition attempted out of the terminal DELETED status."""

    def __init__(self, current: str, target: str, code: str = "terminal_state"):
        super().__init__(current, target, code)
        self.message = f"Account status {current} is terminal; cannot change to {target}"
        self.args = (self.message,)


class AccountStatusGatingError(IdentityError):
    """Raised when the owning account's status forbids user operations."""

    def __init__(self, account_id: int, status: str, code: str = "account_status_gated"):
        self.account_id = account_id
        self.status = status
        super().__init__(
            f"Account {account_id} is {status}; user operations are not allowed", code
        )


class AccountAlreadyExistsError(IdentityError):
    """Raised when an account name is already taken."""

    def __init__(self, message: str, code: str = "account_already_exists"):
        super().__init__(message, code)


class UserAlreadyExistsError(IdentityError):
    """Raised when a username is already taken."""

    def __init__(self, message: str, code: str = "user_already_exists"):
        super().__init__(message, code)


class CloudProfileConflictError(IdentityError):
    """Raised when a user already has an active cloud profile with that name."""

    def __init__(self, message: str, code: str = "cloud_profile_already_exists"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Lookup errors (typically map to 404 Not Found)
# ---------------------------------------------------------------------------


class AccountNotFoundError(IdentityError):
    def __init__(self, message: str = "Account not found", code: str = "account_not_found"):
        super().__init__(message, code)


class UserNotFoundError(IdentityError):
    def __init__(self, message: str = "User not found", code: str = "user_not_found"):
        super().__init__(message, code)


class CloudProfileNotFoundError(IdentityError):
    def __init__(
        self, message: str = "Cloud profile not found", code: str = "cloud_profile_not_found"
    ):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------


class PersistenceError(IdentityError):
    """Raised when the persistence collaborator fails.

    The transaction has been rolled back; the caller may retry the operation.
    Maps to a `503 Service Unavailable`.
    """

    retryable: bool = True

    def __init__(self, message: str = "Persistence operation failed", code: str = "persistence_error"):
        super().__init__(message, code)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data


class PersistenceTimeoutError(PersistenceError):
    """Raised when a persistence call times out."""

    def __init__(self, message: str = "Persistence operation timed out", code: str = "persistence_error"):
        super().__init__(message, code)


class AuditWriteError(IdentityError):
    """Raised by an audit sink that could not append an event.

    Never undoes a committed mutation; the orchestrator logs it and reports
    ``audit_recorded=False`` on the result.
    """

    def __init__(self, message: str = "Audit record could not be written", code: str = "audit_write_error"):
        super().__init__(message, code)
