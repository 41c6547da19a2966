from .audit_sink import InMemoryAuditSink, SQLAuditSink
from .password_hasher import BcryptPasswordHasher

__all__ = ["BcryptPasswordHasher", "InMemoryAuditSink", "SQLAuditSink"]
