"""Domain Interfaces for dependency inversion.

These interfaces define contracts that infrastructure adapters implement:

- Persistence: repositories and the unit of work
- Audit: the append-only audit sink
- Security: password hashing
"""

from .audit import IAuditSink
from .repositories import (
    IAccountRepository,
    ICloudProfileRepository,
    IPasswordHistoryRepository,
    IUnitOfWork,
    IUserRepository,
)
from .security import IPasswordHasher

__all__ = [
    "IAuditSink",
    "IAccountRepository",
    "ICloudProfileRepository",
    "IPasswordHistoryRepository",
    "IUnitOfWork",
    "IUserRepository",
    "IPasswordHasher",
]
