"""Authentication settings: token signing, lifetimes, lockout and OAuth.
"""

import logging

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines settings for authentication, Google federation and JWT configuration.

    Security Note:
        - JWT_SECRET_KEY must be a long random value and rotated regularly to
          prevent token forgery.
        - OAuth client secrets should never be exposed in logs or version control.
    """

    # OAuth settings
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: SecretStr = SecretStr("")
    GOOGLE_HTTP_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # JWT settings
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "https://api.heritage.example.com"
    JWT_AUDIENCE: str = "heritage:api:v1"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1)
    REMEMBER_ME_TOKEN_EXPIRE_DAYS: int = Field(default=30, ge=1)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1)

    # One-time token lifetimes (verification, reset, unlock)
    EMAIL_VERIFICATION_TOKEN_EXPIRE_HOURS: int = Field(default=24, ge=1)
    PASSWORD_RESET_TOKEN_EXPIRE_HOURS: int = Field(default=24, ge=1)
    UNLOCK_TOKEN_EXPIRE_HOURS: int = Field(default=24, ge=1)

    # Lockout
    MAX_FAILED_LOGIN_ATTEMPTS: int = Field(default=5, ge=1)

    # Forgot-password and unlock requests for unknown emails fail instead of
    # succeeding silently when enabled.
    REVEAL_UNKNOWN_EMAIL: bool = False

    # Password policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=1)
    PASSWORD_MAX_LENGTH: int = Field(default=128, ge=1)
    BCRYPT_WORK_FACTOR: int = Field(default=12, ge=4, le=31)

    # Role assignment
    MAX_MANAGERS_PER_TYPE: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _validate_auth_settings(self) -> "AuthSettings":
        """Rejects short signing secrets and inverted password bounds.

        Returns:
            Self instance once validated.

        """
        if len(self.JWT_SECRET_KEY.get_secret_value()) < 32:
            error_msg = "JWT_SECRET_KEY must be at least 32 characters long."
            logger.error(error_msg)
            raise ValueError(error_msg)

        if self.PASSWORD_MIN_LENGTH > self.PASSWORD_MAX_LENGTH:
            raise ValueError("PASSWORD_MIN_LENGTH cannot exceed PASSWORD_MAX_LENGTH.")

        if not self.GOOGLE_CLIENT_ID:
            logger.warning("GOOGLE_CLIENT_ID is not set; Google federation will reject every token.")

        return self
