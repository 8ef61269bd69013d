"""Main application settings and configuration management.

This module composes the settings from the different modules (app, database,
auth, email) into a single `Settings` class and exposes the `settings`
singleton used throughout the application.

Environment Support:
- Development: Uses .env, email test mode enabled
- Test: Uses .env.test, email test mode enabled
- Staging/Production: Uses .env.staging / .env.production, SMTP credentials required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .email import EmailSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(AppSettings, DatabaseSettings, AuthSettings, EmailSettings):
    """The main settings class that aggregates all application configurations.

    Usage:
        - Access settings via the singleton instance `settings`.
        - Services read defaults from it and accept explicit overrides for
          the values tests need to vary.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.APP_ENV in ("development", "test"):
            self.EMAIL_TEST_MODE = True
        if self.APP_ENV == "development":
            self.DEBUG = True

    def validate_required_fields(self) -> None:
        """Validates environment-specific requirements.

        Raises:
            ValueError: If the email configuration is unusable outside
                development and test.

        """
        try:
            self.validate_smtp_config()
        except ValueError as e:
            if self.APP_ENV in ("development", "test"):
                logger.warning(f"Email config warning - {e}")
            else:
                logger.error(f"Email configuration error: {e}")
                raise


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production",
    }
    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    else:
        settings_instance = Settings()

    return settings_instance


settings = create_settings()
settings.validate_required_fields()
