"""Password policy value objects.

These immutable objects describe one configured password rule, the violations
an evaluation produces and the prior credentials a candidate is compared
against. They are shared read-only between concurrent requests.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Tuple


class EnforcementMode(str, Enum):
    """Decides which violations block a mutation.

    Attributes:
        BLOCK_ON_ANY: Advisory violations block just like required ones.
        BLOCK_ON_REQUIRED_ONLY: Advisory violations are reported but never block.
    """

    BLOCK_ON_ANY = "block_on_any"
    BLOCK_ON_REQUIRED_ONLY = "block_on_required_only"


@dataclass(frozen=True)
class PolicyRule:
    """One configured password constraint.

    Attributes:
        key: Unique rule name.
        description: Human-readable description.
        parameters: Read-only mapping of check parameter name to value
            (e.g. ``{"minLength": 8}``).
        priority: Lower priorities evaluate first.
        required: When false the rule's violations are advisory.
    """

    key: str
    description: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)
    priority: int = 0
    required: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, MappingProxyType):
            object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (self.priority, self.key)

    def configures(self, check: str) -> bool:
        return self.parameters.get(check) is not None


@dataclass(frozen=True)
class PolicyViolation:
    """A single rule failure produced during password evaluation.

    Attributes:
        rule_key: Key of the rule that failed.
        check: Parameter name of the failed check (e.g. ``minDigits``).
        message: Human-readable explanation.
        offending: References to the offending values (counts, lengths,
            matched sequences). Never the clear-text candidate.
        advisory: True when the rule is not required.
    """

    rule_key: str
    check: str
    message: str
    offending: Tuple[Any, ...] = ()
    advisory: bool = False

    def to_dict(self) -> dict:
        return {
            "rule_key": self.rule_key,
            "check": self.check,
            "message": self.message,
            "offending": list(self.offending),
            "advisory": self.advisory,
        }


@dataclass(frozen=True)
class PasswordHistoryEntry:
    """A prior credential: its hash and when it was set."""

    password_hash: str
    changed_at: datetime

    def __post_init__(self) -> None:
        if not self.changed_at.tzinfo:
            object.__setattr__(self, "changed_at", self.changed_at.replace(tzinfo=timezone.utc))
