from .account_repository import AccountRepository
from .cloud_profile_repository import CloudProfileRepository
from .password_history_repository import PasswordHistoryRepository
from .unit_of_work import SQLAlchemyUnitOfWork
from .user_repository import UserRepository

__all__ = [
    "AccountRepository",
    "CloudProfileRepository",
    "PasswordHistoryRepository",
    "SQLAlchemyUnitOfWork",
    "UserRepository",
]
