"""Account recovery, lockout and status events."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .base import BaseDomainEvent


@dataclass(frozen=True)
class AccountLockedEvent(BaseDomainEvent):
    """Event published when the failed-attempt threshold locks an account.

    Attributes:
        username: Username of the locked account
        failed_attempts: Counter value that triggered the lock
    """

    username: str
    failed_attempts: int


@dataclass(frozen=True)
class AccountUnlockedEvent(BaseDomainEvent):
    """Event published when a locked account is unlocked.

    Attributes:
        username: Username of the unlocked account
        unlocked_by: ``self`` for token unlocks, otherwise the administrator's username
    """

    username: str
    unlocked_by: str


@dataclass(frozen=True)
class PasswordResetRequestedEvent(BaseDomainEvent):
    username: str
    token_expires_at: datetime


@dataclass(frozen=True)
class PasswordResetCompletedEvent(BaseDomainEvent):
    username: str


@dataclass(frozen=True)
class UserStatusChangedEvent(BaseDomainEvent):
    """Event published for every administrative status transition.

    Attributes:
        username: Username of the affected account
        old_status: Status before the change
        new_status: Status after the change
        changed_by: Username of the administrator
        reason: Free-text reason supplied by the administrator
    """

    username: str
    old_status: str
    new_status: str
    changed_by: str
    reason: Optional[str] = None
