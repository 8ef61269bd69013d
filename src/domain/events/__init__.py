"""Domain Events.

All events are immutable and represent significant business occurrences that
other parts of the system may need to react to.
"""

from .account_events import (
    AccountLockedEvent,
    AccountUnlockedEvent,
    PasswordResetCompletedEvent,
    PasswordResetRequestedEvent,
    UserStatusChangedEvent,
)
from .authentication_events import (
    AuthenticationFailedEvent,
    EmailVerifiedEvent,
    GoogleAccountFederatedEvent,
    TokenRefreshedEvent,
    UserLoggedInEvent,
    UserLoggedOutEvent,
    UserRegisteredEvent,
)
from .base import BaseDomainEvent

__all__ = [
    "BaseDomainEvent",
    "UserRegisteredEvent",
    "EmailVerifiedEvent",
    "UserLoggedInEvent",
    "AuthenticationFailedEvent",
    "TokenRefreshedEvent",
    "UserLoggedOutEvent",
    "GoogleAccountFederatedEvent",
    "AccountLockedEvent",
    "AccountUnlockedEvent",
    "PasswordResetRequestedEvent",
    "PasswordResetCompletedEvent",
    "UserStatusChangedEvent",
]
