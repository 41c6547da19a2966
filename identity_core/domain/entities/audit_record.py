from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel, String

from identity_core.domain.value_objects.audit import AuditEvent


class AuditRecord(SQLModel, table=True):
    """Storage row for an ``AuditEvent``. Rows are inserted, never updated."""

    __tablename__ = "audit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: str = Field(sa_column=Column(String(36), unique=True, nullable=False))
    actor: str = Field(max_length=256)
    action: str = Field(sa_column=Column(String(64), index=True, nullable=False))
    target_type: str = Field(max_length=64)
    target_id: str = Field(sa_column=Column(String(256), index=True, nullable=False))
    outcome: str = Field(max_length=16)
    timestamp: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    correlation_id: Optional[str] = Field(default=None, max_length=256)
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    notes: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    @classmethod
    def from_event(cls, event: AuditEvent) -> "AuditRecord":
        return cls(
            event_id=event.event_id,
            actor=event.actor,
            action=event.action.value,
            target_type=event.target_type.value,
            target_id=event.target_id,
            outcome=event.outcome.value,
            timestamp=event.timestamp,
            correlation_id=event.correlation_id,
            details=dict(event.details),
            notes=list(event.notes),
        )
