"""Security service interfaces.

Password hashing is a CPU-only operation and is therefore synchronous; the
password policy evaluator calls ``verify`` while comparing a candidate with
prior credentials.
"""

from abc import ABC, abstractmethod


class IPasswordHasher(ABC):
    """Interface for one-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hashes a clear-text password.

        Args:
            password: The clear-text password.

        Returns:
            The encoded hash, including its salt and algorithm parameters.
        """
        raise NotImplementedError

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Checks a clear-text password against a stored hash.

        Returns:
            `True` when they match. Malformed hashes never match.
        """
        raise NotImplementedError
