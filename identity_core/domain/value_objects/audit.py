"""Audit value objects.

An ``AuditEvent`` is an immutable record of one mutating top-level operation.
Records have no update or delete API.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class AuditAction(str, Enum):
    """Mutating actions recorded in the audit log."""

    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    ACCOUNT_UPDATED = "ACCOUNT_UPDATED"
    ACCOUNT_STATUS_CHANGED = "ACCOUNT_STATUS_CHANGED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    CLOUD_PROFILE_CREATED = "CLOUD_PROFILE_CREATED"
    CLOUD_PROFILE_UPDATED = "CLOUD_PROFILE_UPDATED"
    CLOUD_PROFILE_DELETED = "CLOUD_PROFILE_DELETED"


class AuditOutcome(str, Enum):
    SUCCESS = "SUCCESS"


class TargetType(str, Enum):
    ACCOUNT = "account"
    USER = "user"
    CLOUD_PROFILE = "cloud_profile"


@dataclass(frozen=True)
class AuditEvent:
    """Immutable audit record.

    Attributes:
        actor: Identifier of whoever performed the action.
        action: What was done.
        target_type: Kind of entity affected.
        target_id: Identifier of the entity affected.
        outcome: Result of the operation.
        timestamp: When it happened (UTC).
        correlation_id: Request correlation identifier.
        details: Masked, read-only description of the change.
        notes: Warning-level remarks (e.g. roles without scopes, advisory
            password violations that did not block).
    """

    actor: str
    action: AuditAction
    target_type: TargetType
    target_id: str
    outcome: AuditOutcome = AuditOutcome.SUCCESS
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)
    notes: Tuple[str, ...] = ()
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not self.timestamp.tzinfo:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, "details", MappingProxyType(dict(self.details)))
        object.__setattr__(self, "notes", tuple(self.notes))
