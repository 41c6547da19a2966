"""Request phases and operation results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Generic, Optional, Tuple, TypeVar

from identity_core.core.exceptions import IdentityError
from identity_core.domain.value_objects.policy import PolicyViolation

T = TypeVar("T")


class RequestPhase(str, Enum):
    """Phases a single orchestrated request moves through."""

    RECEIVED = "RECEIVED"
    VALIDATING = "VALIDATING"
    POLICY_CHECK = "POLICY_CHECK"
    PERSISTING = "PERSISTING"
    AUDITING = "AUDITING"
    DONE = "DONE"
    FAILED = "FAILED"


PHASE_TRANSITIONS: Dict[RequestPhase, FrozenSet[RequestPhase]] = {
    RequestPhase.RECEIVED: frozenset({RequestPhase.VALIDATING, RequestPhase.POLICY_CHECK}),
    RequestPhase.VALIDATING: frozenset(
        {RequestPhase.POLICY_CHECK, RequestPhase.PERSISTING, RequestPhase.DONE, RequestPhase.FAILED}
    ),
    RequestPhase.POLICY_CHECK: frozenset(
        {RequestPhase.PERSISTING, RequestPhase.DONE, RequestPhase.FAILED}
    ),
    RequestPhase.PERSISTING: frozenset({RequestPhase.AUDITING, RequestPhase.FAILED}),
    RequestPhase.AUDITING: frozenset({RequestPhase.DONE}),
    RequestPhase.DONE: frozenset(),
    RequestPhase.FAILED: frozenset(),
}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of one public orchestrator operation.

    Attributes:
        value: The success value, or None on failure.
        error: The typed error, or None on success.
        phase: The last phase reached (DONE or FAILED).
        failed_phase: The phase in which the error happened.
        audit_recorded: Whether the audit event was written.
    """

    value: Optional[T] = None
    error: Optional[IdentityError] = None
    phase: RequestPhase = RequestPhase.DONE
    failed_phase: Optional[RequestPhase] = None
    audit_recorded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Returns the value or raises the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class PasswordEvaluation:
    """Result of evaluating a candidate without persisting anything."""

    violations: Tuple[PolicyViolation, ...] = ()
    blocking_violations: Tuple[PolicyViolation, ...] = ()

    @property
    def blocked(self) -> bool:
        return bool(self.blocking_violations)


@dataclass(frozen=True)
class SessionEligibility:
    user_id: int
    eligible: bool
    reasons: Tuple[str, ...] = field(default_factory=tuple)
