"""Role to scope resolution.

The role catalog maps each role identifier to the set of scopes it grants.
It is loaded once at startup and never changes afterwards, so every method
here is a pure read and safe to share between requests.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Union

import structlog

from identity_core.core.exceptions import (
    ConfigError,
    DuplicateOrUnknownRoleError,
    UnknownRoleError,
)

logger = structlog.get_logger(__name__)


def _ordered_unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class RoleScopeResolver:
    """Resolves role identifiers to their scopes.

    Args:
        catalog: Mapping of role identifier to an iterable of scope ids.

    Raises:
        ConfigError: If the catalog is not a mapping of strings to lists of
            strings.
    """

    def __init__(self, catalog: Mapping[str, Iterable[str]]):
        if not isinstance(catalog, Mapping):
            raise ConfigError("Role catalog must be a mapping of role id to scopes")
        roles: Dict[str, FrozenSet[str]] = {}
        for role_id, scopes in catalog.items():
            if not isinstance(role_id, str) or not role_id:
                raise ConfigError("Role identifiers must be non-empty strings")
            if isinstance(scopes, str) or not isinstance(scopes, (list, tuple, set, frozenset)):
                raise ConfigError(f"Scopes of role '{role_id}' must be a list of strings")
            if not all(isinstance(scope, str) and scope for scope in scopes):
                raise ConfigError(f"Scopes of role '{role_id}' must be non-empty strings")
            roles[role_id] = frozenset(scopes)
        self._catalog: Mapping[str, FrozenSet[str]] = MappingProxyType(roles)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RoleScopeResolver":
        """Loads a JSON catalog file (``{"ROLE": ["scope", ...], ...}``)."""
        try:
            catalog: Any = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Role catalog '{path}' cannot be read: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Role catalog '{path}' is not valid JSON: {exc}") from exc
        resolver = cls(catalog)
        logger.info("Role catalog loaded", path=str(path), role_count=len(resolver.role_ids))
        return resolver

    @property
    def role_ids(self) -> FrozenSet[str]:
        return frozenset(self._catalog)

    def resolve(self, role_ids: Iterable[str]) -> Dict[str, FrozenSet[str]]:
        """Maps each role to its scopes.

        Raises:
            UnknownRoleError: Listing every unresolved id, in order of first
                appearance.
        """
        requested = _ordered_unique(role_ids)
        unknown = [role_id for role_id in requested if role_id not in self._catalog]
        if unknown:
            raise UnknownRoleError(unknown)
        return {role_id: self._catalog[role_id] for role_id in requested}

    def validate_default_roles(self, role_ids: Iterable[str]) -> None:
        """Validates an account's default roles.

        Raises:
            DuplicateOrUnknownRoleError: Listing duplicated and unknown ids
                together.
        """
        roles = list(role_ids)
        seen = set()
        duplicates: List[str] = []
        for role_id in roles:
            if role_id in seen and role_id not in duplicates:
                duplicates.append(role_id)
            seen.add(role_id)
        unknown = [role_id for role_id in _ordered_unique(roles) if role_id not in self._catalog]
        if duplicates or unknown:
            raise DuplicateOrUnknownRoleError(duplicates=duplicates, unknown=unknown)

    def empty_roles(self, role_ids: Iterable[str]) -> List[str]:
        """Lists the resolvable roles among ``role_ids`` that grant no scopes."""
        return [
            role_id
            for role_id in _ordered_unique(role_ids)
            if role_id in self._catalog and not self._catalog[role_id]
        ]

    def scopes_for(self, role_ids: Iterable[str]) -> FrozenSet[str]:
        """Union of the scopes granted by ``role_ids``."""
        resolved = self.resolve(role_ids)
        return frozenset().union(*resolved.values()) if resolved else frozenset()
