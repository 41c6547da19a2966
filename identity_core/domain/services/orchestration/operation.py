"""Shared request machinery for orchestrated operations.

``OperationContext`` tracks the phase of one request and turns any raised
error into a failed ``OperationResult``. ``TransactionalService`` supplies the
persist-then-audit steps every mutating operation shares.
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from identity_core.core.exceptions import (
    IdentityError,
    PersistenceError,
    PersistenceTimeoutError,
)
from identity_core.domain.interfaces.audit import IAuditSink
from identity_core.domain.interfaces.repositories import IUnitOfWork
from identity_core.domain.services.orchestration.results import (
    PHASE_TRANSITIONS,
    OperationResult,
    RequestPhase,
)
from identity_core.domain.value_objects.audit import AuditEvent

logger = structlog.get_logger(__name__)

T = TypeVar("T")

TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError)


class OperationContext:
    """Phase tracker and bound logger for a single request."""

    def __init__(self, operation: str, correlation_id: Optional[str] = None):
        self.operation = operation
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.phase = RequestPhase.RECEIVED
        self.logger = logger.bind(operation=operation, correlation_id=self.correlation_id)

    def advance(self, phase: RequestPhase) -> None:
        if phase not in PHASE_TRANSITIONS[self.phase]:
            raise RuntimeError(f"Illegal request phase change {self.phase.value} -> {phase.value}")
        self.logger.debug("Request phase changed", previous=self.phase.value, phase=phase.value)
        self.phase = phase

    def succeed(self, value: T, audit_recorded: bool = False) -> OperationResult[T]:
        self.advance(RequestPhase.DONE)
        self.logger.info("Operation completed", audit_recorded=audit_recorded)
        return OperationResult(value=value, phase=RequestPhase.DONE, audit_recorded=audit_recorded)

    def fail(self, error: Exception) -> OperationResult[Any]:
        failed_phase = self.phase
        if isinstance(error, TIMEOUT_ERRORS):
            error = PersistenceTimeoutError()
        elif not isinstance(error, IdentityError):
            self.logger.exception(
                "Operation failed with unexpected error",
                phase=failed_phase.value,
                error_type=type(error).__name__,
            )
            if failed_phase == RequestPhase.PERSISTING:
                error = PersistenceError()
            else:
                error = IdentityError("Unexpected error while processing request", "internal_error")
        self.phase = RequestPhase.FAILED
        self.logger.warning(
            "Operation rejected",
            phase=failed_phase.value,
            error_code=error.code,
            error_message=error.message,
        )
        return OperationResult(error=error, phase=RequestPhase.FAILED, failed_phase=failed_phase)


class TransactionalService:
    """Base for services that persist in one transaction and then audit."""

    def __init__(self, unit_of_work: IUnitOfWork, audit_sink: IAuditSink):
        self._unit_of_work = unit_of_work
        self._audit_sink = audit_sink

    async def _persist(self, context: OperationContext, work: Callable[[], Awaitable[T]]) -> T:
        """Runs ``work`` and commits; rolls back and raises on any failure.

        Raises:
            PersistenceError: Wrapping whatever the store raised.
        """
        context.advance(RequestPhase.PERSISTING)
        try:
            result = await work()
            await self._unit_of_work.commit()
            return result
        except Exception as exc:
            await self._rollback(context)
            if isinstance(exc, TIMEOUT_ERRORS):
                raise PersistenceTimeoutError() from exc
            if isinstance(exc, IdentityError):
                raise
            context.logger.error(
                "Persistence failed", error_type=type(exc).__name__, error_message=str(exc)
            )
            raise PersistenceError() from exc

    async def _rollback(self, context: OperationContext) -> None:
        try:
            await self._unit_of_work.rollback()
        except Exception as exc:
            context.logger.error(
                "Rollback failed", error_type=type(exc).__name__, error_message=str(exc)
            )

    async def _record(self, context: OperationContext, event: AuditEvent) -> bool:
        """Appends ``event``; failures are logged and never undo the commit."""
        context.advance(RequestPhase.AUDITING)
        try:
            await self._audit_sink.append(event)
            return True
        except Exception as exc:
            context.logger.error(
                "Audit write failed",
                event_id=event.event_id,
                action=event.action.value,
                target_id=event.target_id,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return False
