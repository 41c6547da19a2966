"""Export identity domain entities for use across the application.

This module provides a clean interface for importing the Account, User,
password history, cloud profile and audit storage models.
"""

from .account import Account, AccountStatus
from .audit_record import AuditRecord
from .cloud_profile import CloudProfile, CloudProfileStatus
from .password_history import PasswordHistory
from .user import User, UserAddress, UserStatus

__all__ = [
    "Account",
    "AccountStatus",
    "AuditRecord",
    "CloudProfile",
    "CloudProfileStatus",
    "PasswordHistory",
    "User",
    "UserAddress",
    "UserStatus",
]
