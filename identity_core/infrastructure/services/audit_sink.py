"""Audit sink implementations.

``SQLAuditSink`` writes every event in a session of its own, so the audit
write is never part of the transaction of the change it records.
"""

from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from identity_core.core.exceptions import AuditWriteError
from identity_core.domain.entities.audit_record import AuditRecord
from identity_core.domain.interfaces.audit import IAuditSink
from identity_core.domain.value_objects.audit import AuditEvent

logger = get_logger(__name__)


class SQLAuditSink(IAuditSink):
    """Appends audit events to the ``audit_log`` table.

    Args:
        session_factory: Callable returning a new ``AsyncSession``.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def append(self, event: AuditEvent) -> None:
        try:
            async with self._session_factory() as session:
                session.add(AuditRecord.from_event(event))
                await session.commit()
        except SQLAlchemyError as e:
            raise AuditWriteError(f"Audit event {event.event_id} could not be written") from e
        logger.info(
            "Audit event recorded",
            event_id=event.event_id,
            action=event.action.value,
            target_type=event.target_type.value,
            target_id=event.target_id,
            correlation_id=event.correlation_id,
        )


class InMemoryAuditSink(IAuditSink):
    """Keeps events in memory, for development and testing."""

    def __init__(self):
        self._events: List[AuditEvent] = []
        logger.info("InMemoryAuditSink initialized")

    async def append(self, event: AuditEvent) -> None:
        self._events.append(event)
        logger.info(
            "Audit event recorded in memory",
            event_id=event.event_id,
            action=event.action.value,
            target_id=event.target_id,
        )

    @property
    def events(self) -> List[AuditEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()
