"""
Password policy, role catalog and account hierarchy settings.

These values are read once by the composition root at startup. Components
never read them directly; they receive the loaded rule set, resolver and
limits as constructor arguments.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import Field
from pydantic_settings import BaseSettings

from identity_core.domain.value_objects.policy import EnforcementMode


class PolicySettings(BaseSettings):
    """
    Defines where the password policy and role catalog come from and how they
    are enforced.

    Either the inline value (``PASSWORD_POLICY`` / ``ROLE_CATALOG``, given as
    JSON in the environment) or the file path variant is used; the inline
    value wins when both are set.
    """
    PASSWORD_POLICY: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]] = None
    PASSWORD_POLICY_PATH: Optional[str] = None
    POLICY_ENFORCEMENT_MODE: EnforcementMode = EnforcementMode.BLOCK_ON_REQUIRED_ONLY

    ROLE_CATALOG: Optional[Dict[str, List[str]]] = None
    ROLE_CATALOG_PATH: Optional[str] = None

    MAX_ACCOUNT_DEPTH: int = Field(ge=1, default=10)
    DEFAULT_ACCOUNT_NAME: Optional[str] = None

    BCRYPT_WORK_FACTOR: int = Field(ge=4, le=31, default=12)
