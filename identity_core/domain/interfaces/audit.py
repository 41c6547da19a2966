"""Audit sink interface.

The sink is append-only: there is no read, update or delete operation in the
contract. Implementations must not share the transaction of the mutation they
record, so that a failed audit write never undoes a committed change.
"""

from abc import ABC, abstractmethod

from identity_core.domain.value_objects.audit import AuditEvent


class IAuditSink(ABC):
    """Interface for appending audit events."""

    @abstractmethod
    async def append(self, event: AuditEvent) -> None:
        """Appends one event.

        Args:
            event: The immutable event to record.

        Raises:
            AuditWriteError: If the event could not be stored.
        """
        raise NotImplementedError
