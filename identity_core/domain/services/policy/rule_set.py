"""Loading and validation of the password policy rule set.

A ``PolicyRuleSet`` is built once at startup from a configuration value and
is immutable afterwards. Everything that can be wrong with a configuration is
reported here as a ``ConfigError`` so that evaluation itself never fails on
configuration and never performs I/O.
"""

import json
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

import structlog

from identity_core.core.exceptions import ConfigError
from identity_core.domain.value_objects.policy import PolicyRule

logger = structlog.get_logger(__name__)

DEFAULT_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# Rule-level keys that are not check parameters.
RULE_METADATA_KEYS = frozenset({"key", "description", "priority", "required", "parameters"})

# Default rule set used when no policy is configured.
DEFAULT_POLICY: Dict[str, Any] = {
    "rules": [
        {
            "key": "default",
            "description": "Baseline password strength",
            "priority": 0,
            "required": True,
            "parameters": {
                "minLength": 8,
                "maxLength": 128,
                "minUppercase": 1,
                "minLowercase": 1,
                "minDigits": 1,
                "minSpecial": 1,
            },
        }
    ]
}

PolicyConfiguration = Union[Mapping[str, Any], List[Mapping[str, Any]]]


def _non_negative_int(name: str, value: Any, base_path: Optional[Path]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Parameter '{name}' must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ConfigError(f"Parameter '{name}' must not be negative, got {value}")
    return value


def _special_characters(name: str, value: Any, base_path: Optional[Path]) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"Parameter '{name}' must be a non-empty string")
    return value


def _blacklist(name: str, value: Any, base_path: Optional[Path]) -> FrozenSet[str]:
    """Reads a blacklist from an inline list or a newline-separated file."""
    if isinstance(value, (list, tuple)):
        words = []
        for word in value:
            if not isinstance(word, str):
                raise ConfigError(f"Parameter '{name}' must only contain strings")
            words.append(word)
    elif isinstance(value, str):
        path = Path(value)
        if base_path is not None and not path.is_absolute():
            path = base_path / path
        try:
            words = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise ConfigError(f"Blacklist source '{value}' cannot be read: {exc}") from exc
    else:
        raise ConfigError(f"Parameter '{name}' must be a list of words or a file path")
    return frozenset(word.strip().lower() for word in words if word.strip())


PARAMETER_PARSERS: Dict[str, Callable[[str, Any, Optional[Path]], Any]] = {
    "minLength": _non_negative_int,
    "maxLength": _non_negative_int,
    "minUppercase": _non_negative_int,
    "minLowercase": _non_negative_int,
    "minDigits": _non_negative_int,
    "minSpecial": _non_negative_int,
    "specialCharacters": _special_characters,
    "usernameSequenceLength": _non_negative_int,
    "historyDepth": _non_negative_int,
    "expiryDays": _non_negative_int,
    "passwordUpdateTimeIntervalSec": _non_negative_int,
    "blacklistSource": _blacklist,
}


def _parse_rule(raw: Any, default_key: Optional[str], base_path: Optional[Path]) -> PolicyRule:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"A policy rule must be a mapping, got {type(raw).__name__}")

    key = raw.get("key", default_key)
    if not isinstance(key, str) or not key:
        raise ConfigError("Every policy rule needs a non-empty string 'key'")

    description = raw.get("description", "")
    if not isinstance(description, str):
        raise ConfigError(f"Rule '{key}': 'description' must be a string")

    priority = raw.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ConfigError(f"Rule '{key}': 'priority' must be an integer")

    required = raw.get("required", True)
    if not isinstance(required, bool):
        raise ConfigError(f"Rule '{key}': 'required' must be a boolean")

    nested = raw.get("parameters", {})
    if not isinstance(nested, Mapping):
        raise ConfigError(f"Rule '{key}': 'parameters' must be a mapping")
    flat = {name: value for name, value in raw.items() if name not in RULE_METADATA_KEYS}
    overlap = sorted(set(nested) & set(flat))
    if overlap:
        raise ConfigError(f"Rule '{key}': parameters given twice: {', '.join(overlap)}")

    parameters: Dict[str, Any] = {}
    for name, value in list(nested.items()) + list(flat.items()):
        parser = PARAMETER_PARSERS.get(name)
        if parser is None:
            raise ConfigError(f"Rule '{key}': unknown parameter '{name}'")
        if value is None:
            continue
        parameters[name] = parser(name, value, base_path)

    min_length = parameters.get("minLength")
    max_length = parameters.get("maxLength")
    if min_length is not None and max_length is not None and min_length > max_length:
        raise ConfigError(
            f"Rule '{key}': minLength ({min_length}) is greater than maxLength ({max_length})"
        )

    return PolicyRule(
        key=key,
        description=description,
        parameters=parameters,
        priority=priority,
        required=required,
    )


def _check_priority_collisions(rules: Iterable[PolicyRule]) -> None:
    """Rejects a required and an advisory rule configuring one check at one priority."""
    for first, second in combinations(rules, 2):
        if first.priority != second.priority or first.required == second.required:
            continue
        shared = sorted(set(first.parameters) & set(second.parameters))
        if shared:
            raise ConfigError(
                f"Rules '{first.key}' and '{second.key}' share priority {first.priority} "
                f"but disagree on 'required' for: {', '.join(shared)}"
            )


@dataclass(frozen=True)
class PolicyRuleSet:
    """Immutable, ordered collection of password rules.

    Use ``PolicyRuleSet.load`` to build one from configuration; rules are kept
    sorted by ``(priority, key)``.
    """

    ordered_rules: Tuple[PolicyRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "ordered_rules", tuple(sorted(self.ordered_rules, key=lambda rule: rule.sort_key))
        )

    @classmethod
    def load(
        cls,
        configuration: PolicyConfiguration,
        base_path: Optional[Union[str, Path]] = None,
    ) -> "PolicyRuleSet":
        """Builds a rule set from a configuration value.

        Args:
            configuration: ``{"rules": [...]}``, a list of rule mappings, or a
                single flat rule mapping (loaded as the rule ``default``).
            base_path: Directory that relative blacklist file paths are
                resolved against.

        Raises:
            ConfigError: If the configuration is malformed in any way.
        """
        base = Path(base_path) if base_path is not None else None

        if isinstance(configuration, Mapping) and "rules" in configuration:
            raw_rules = configuration["rules"]
            if not isinstance(raw_rules, (list, tuple)):
                raise ConfigError("'rules' must be a list of rule mappings")
            rules = [_parse_rule(raw, None, base) for raw in raw_rules]
        elif isinstance(configuration, (list, tuple)):
            rules = [_parse_rule(raw, None, base) for raw in configuration]
        elif isinstance(configuration, Mapping):
            rules = [_parse_rule(configuration, "default", base)]
        else:
            raise ConfigError(
                f"Unsupported policy configuration type: {type(configuration).__name__}"
            )

        seen = set()
        for rule in rules:
            if rule.key in seen:
                raise ConfigError(f"Duplicate policy rule key '{rule.key}'")
            seen.add(rule.key)

        _check_priority_collisions(rules)

        rule_set = cls(ordered_rules=tuple(rules))
        logger.info(
            "Password policy loaded",
            rule_count=len(rule_set.ordered_rules),
            rule_keys=[rule.key for rule in rule_set.ordered_rules],
        )
        return rule_set

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PolicyRuleSet":
        """Loads a JSON policy file; relative blacklist paths resolve beside it."""
        file_path = Path(path)
        try:
            configuration = json.loads(file_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Password policy file '{path}' cannot be read: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Password policy file '{path}' is not valid JSON: {exc}") from exc
        return cls.load(configuration, base_path=file_path.parent)

    def rules(self) -> Tuple[PolicyRule, ...]:
        """Returns the rules in evaluation order."""
        return self.ordered_rules

    def max_parameter(self, name: str) -> int:
        """Largest integer value configured for ``name`` across rules, or 0."""
        values = [rule.parameters[name] for rule in self.ordered_rules if rule.configures(name)]
        return max(values, default=0)

    def __len__(self) -> int:
        return len(self.ordered_rules)
