"""Bcrypt password hashing via passlib."""

from passlib.context import CryptContext
from structlog import get_logger

from identity_core.domain.interfaces.security import IPasswordHasher

logger = get_logger(__name__)


class BcryptPasswordHasher(IPasswordHasher):
    """``IPasswordHasher`` backed by a passlib ``CryptContext``.

    Args:
        work_factor: bcrypt cost (log2 rounds).
    """

    def __init__(self, work_factor: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=work_factor
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError) as e:
            # Malformed or foreign hash formats never match.
            logger.warning("Password hash could not be verified", error_type=type(e).__name__)
            return False
