"""
Application-specific settings.
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment, logging
    and the public front-end address used when building links in emails.

    Security Note:
        - FRONTEND_URL ends up inside verification, reset and unlock links.
          It must point at a trusted origin in production.
    """
    PROJECT_NAME: str = "heritage-guard"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    DEFAULT_LANGUAGE: str = "en"
    FRONTEND_URL: str = Field(default="http://localhost:3000")

    @field_validator("FRONTEND_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """
        Normalises the front-end base URL so paths can be appended safely.

        Args:
            v: Raw URL from the environment.

        Returns:
            The URL without a trailing slash.
        """
        if isinstance(v, str):
            return v.rstrip("/")
        return v
