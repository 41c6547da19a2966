"""
Application-specific settings.
"""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment and logging.
    """
    PROJECT_NAME: str = "identity-core"
    VERSION: str = "0.1.0"
    DESCRIPTION: str = "Account and user identity management service."
    APP_ENV: str = "development"
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = Field(ge=1, default=1)

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    ALLOWED_ORIGINS: List[str] = ["*"]
