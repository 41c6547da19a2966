"""Domain Value Objects for the identity domain.

Value objects are immutable and compared by their attributes. They are shared
read-only between concurrent requests.
"""

from .audit import AuditAction, AuditEvent, AuditOutcome, TargetType
from .policy import EnforcementMode, PasswordHistoryEntry, PolicyRule, PolicyViolation

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditOutcome",
    "TargetType",
    "EnforcementMode",
    "PasswordHistoryEntry",
    "PolicyRule",
    "PolicyViolation",
]
