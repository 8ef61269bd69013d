"""Failed-login lockout state machine.

States are stored on the user row: ``account_non_locked=True`` is UNLOCKED,
``False`` is LOCKED. The machine mutates the entity in memory; persisting it
is the caller's job.
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from src.core.config.settings import settings
from src.core.exceptions import InvalidTokenError, TokenExpiredError
from src.domain.entities.user import User
from src.domain.value_objects.one_time_token import OneTimeToken, is_expired
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)


class LockoutStateMachine:
    """Tracks failed attempts and the locked/unlocked state of an account.

    Attributes:
        max_attempts: Consecutive failures that lock the account.
        unlock_token_lifetime: Validity of self-service unlock tokens.
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        unlock_token_lifetime: Optional[timedelta] = None,
    ):
        self.max_attempts = max_attempts or settings.MAX_FAILED_LOGIN_ATTEMPTS
        self.unlock_token_lifetime = unlock_token_lifetime or timedelta(hours=settings.UNLOCK_TOKEN_EXPIRE_HOURS)

    @staticmethod
    def is_locked(user: User) -> bool:
        return not user.account_non_locked

    def record_failure(self, user: User, now: datetime) -> bool:
        """Count one failed credential check.

        Returns:
            True if this failure moved the account into LOCKED.
        """
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.account_non_locked and user.failed_login_attempts >= self.max_attempts:
            user.account_non_locked = False
            user.lockout_time = now
            logger.warning(
                "account_locked_after_failed_attempts",
                user_id=user.id,
                failed_attempts=user.failed_login_attempts,
            )
            return True
        return False

    @staticmethod
    def record_success(user: User) -> None:
        user.failed_login_attempts = 0
        user.lockout_time = None

    def issue_unlock_token(self, user: User, now: datetime) -> OneTimeToken:
        token = OneTimeToken.generate(now, self.unlock_token_lifetime)
        user.unlock_token = token.value
        user.unlock_token_expires_at = token.expires_at
        return token

    def unlock_with_token(self, user: User, token: str, now: datetime) -> None:
        """Consume a self-service unlock token.

        An expired token is cleared and cannot be retried; a new one must be
        requested.

        Raises:
            InvalidTokenError: If ``token`` is not the one stored on the user.
            TokenExpiredError: If the stored token has expired.
        """
        if not user.unlock_token or user.unlock_token != token:
            raise InvalidTokenError(get_translated_message("invalid_unlock_token"), "invalid_unlock_token")
        if is_expired(user.unlock_token_expires_at, now):
            user.unlock_token = None
            user.unlock_token_expires_at = None
            raise TokenExpiredError(get_translated_message("unlock_token_expired"), "unlock_token_expired")

        self.force_unlock(user)
        user.unlock_token = None
        user.unlock_token_expires_at = None

    @staticmethod
    def force_unlock(user: User) -> None:
        user.account_non_locked = True
        user.failed_login_attempts = 0
        user.lockout_time = None

    @staticmethod
    def force_lock(user: User) -> None:
        """Lock without counting attempts, used when an account is disabled."""
        user.account_non_locked = False
        user.failed_login_attempts = 0
        user.lockout_time = None
        user.unlock_token = None
        user.unlock_token_expires_at = None
