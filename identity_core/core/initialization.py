"""Application initialization and setup.

This module handles the tasks required before the application starts:
environment loading, logging configuration and loading the password policy
and role catalog the rest of the application shares read-only.
"""

from dataclasses import dataclass

from dotenv import load_dotenv

from identity_core.core.config.settings import Settings, settings
from identity_core.core.logging import configure_logging, logger
from identity_core.domain.interfaces.security import IPasswordHasher
from identity_core.domain.services.policy.rule_set import DEFAULT_POLICY, PolicyRuleSet
from identity_core.domain.services.roles.role_scope_resolver import RoleScopeResolver
from identity_core.infrastructure.services.password_hasher import BcryptPasswordHasher


@dataclass(frozen=True)
class IdentityComponents:
    """Immutable startup configuration handed to every request."""

    rule_set: PolicyRuleSet
    role_resolver: RoleScopeResolver
    password_hasher: IPasswordHasher


def initialize_application() -> None:
    """Loads environment variables and configures logging."""
    load_dotenv(override=True)
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)


def load_rule_set(config: Settings) -> PolicyRuleSet:
    """Builds the password policy; the inline value wins over the file path.

    Raises:
        ConfigError: If the configured policy is invalid.
    """
    if config.PASSWORD_POLICY is not None:
        return PolicyRuleSet.load(config.PASSWORD_POLICY)
    if config.PASSWORD_POLICY_PATH:
        return PolicyRuleSet.from_file(config.PASSWORD_POLICY_PATH)
    logger.warning("No password policy configured; using the default policy")
    return PolicyRuleSet.load(DEFAULT_POLICY)


def load_role_resolver(config: Settings) -> RoleScopeResolver:
    """Builds the role catalog; the inline value wins over the file path.

    Raises:
        ConfigError: If the configured catalog is invalid.
    """
    if config.ROLE_CATALOG is not None:
        return RoleScopeResolver(config.ROLE_CATALOG)
    if config.ROLE_CATALOG_PATH:
        return RoleScopeResolver.from_file(config.ROLE_CATALOG_PATH)
    logger.warning("No role catalog configured; every role will be rejected")
    return RoleScopeResolver({})


def load_components(config: Settings = settings) -> IdentityComponents:
    return IdentityComponents(
        rule_set=load_rule_set(config),
        role_resolver=load_role_resolver(config),
        password_hasher=BcryptPasswordHasher(config.BCRYPT_WORK_FACTOR),
    )
