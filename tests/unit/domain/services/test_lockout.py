"""Tests for the failed-login lockout state machine."""

from datetime import datetime, timedelta

import pytest

from src.core.exceptions import InvalidTokenError, TokenExpiredError
from src.domain.services.auth.lockout import LockoutStateMachine
from tests.factories import create_fake_user

NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def lockout():
    return LockoutStateMachine(max_attempts=5, unlock_token_lifetime=timedelta(hours=24))


class TestRecordFailure:
    def test_locks_on_fifth_failure(self, lockout):
        # Arrange
        user = create_fake_user()

        # Act
        outcomes = [lockout.record_failure(user, NOW) for _ in range(5)]

        # Assert
        assert outcomes == [False, False, False, False, True]
        assert lockout.is_locked(user)
        assert user.failed_login_attempts == 5
        assert user.lockout_time == NOW

    def test_further_failures_do_not_relock(self, lockout):
        user = create_fake_user(account_non_locked=False, failed_login_attempts=5)

        assert lockout.record_failure(user, NOW) is False
        assert user.failed_login_attempts == 6

    def test_success_resets_counter_but_not_lock(self, lockout):
        user = create_fake_user(failed_login_attempts=3, lockout_time=NOW)

        lockout.record_success(user)

        assert user.failed_login_attempts == 0
        assert user.lockout_time is None
        assert not lockout.is_locked(user)


class TestUnlockWithToken:
    def test_valid_token_unlocks(self, lockout):
        # Arrange
        user = create_fake_user(account_non_locked=False, failed_login_attempts=5, lockout_time=NOW)
        token = lockout.issue_unlock_token(user, NOW)

        # Act
        lockout.unlock_with_token(user, token.value, NOW + timedelta(hours=1))

        # Assert
        assert not lockout.is_locked(user)
        assert user.failed_login_attempts == 0
        assert user.unlock_token is None
        assert user.unlock_token_expires_at is None

    def test_token_is_single_use(self, lockout):
        user = create_fake_user(account_non_locked=False)
        token = lockout.issue_unlock_token(user, NOW)
        lockout.unlock_with_token(user, token.value, NOW)

        with pytest.raises(InvalidTokenError):
            lockout.unlock_with_token(user, token.value, NOW)

    def test_expired_token_is_cleared(self, lockout):
        # Arrange
        user = create_fake_user(account_non_locked=False)
        token = lockout.issue_unlock_token(user, NOW)

        # Act
        with pytest.raises(TokenExpiredError):
            lockout.unlock_with_token(user, token.value, NOW + timedelta(hours=24, seconds=1))

        # Assert
        assert lockout.is_locked(user)
        assert user.unlock_token is None

    def test_wrong_token(self, lockout):
        user = create_fake_user(account_non_locked=False)
        lockout.issue_unlock_token(user, NOW)

        with pytest.raises(InvalidTokenError) as exc_info:
            lockout.unlock_with_token(user, "not-the-token", NOW)
        assert not isinstance(exc_info.value, TokenExpiredError)


class TestForcedTransitions:
    def test_force_lock_and_unlock(self, lockout):
        user = create_fake_user(failed_login_attempts=2, lockout_time=NOW, unlock_token="pending-unlock")

        lockout.force_lock(user)
        assert lockout.is_locked(user)
        assert user.failed_login_attempts == 0
        assert user.lockout_time is None
        assert user.unlock_token is None

        lockout.force_unlock(user)
        assert not lockout.is_locked(user)
