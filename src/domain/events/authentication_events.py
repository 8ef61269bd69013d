"""Authentication Domain Events.

Registration, verification, login, session and federation events. Audit
logging and security monitoring subscribe to these through the event
publisher.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .base import BaseDomainEvent


@dataclass(frozen=True)
class UserRegisteredEvent(BaseDomainEvent):
    """Event published when an account is created.

    Attributes:
        username: Username of the new user
        role: Role assigned to the user
        registration_source: ``self``, ``admin``, ``setup`` or ``google``
    """

    username: str
    role: str
    registration_source: str = "self"

    @classmethod
    def create(
        cls,
        occurred_at: datetime,
        user_id: int,
        username: str,
        role: str,
        registration_source: str = "self",
        correlation_id: Optional[str] = None,
    ) -> "UserRegisteredEvent":
        """Create a registration event.

        Args:
            occurred_at: Current time according to the service clock
            user_id: ID of the registered user
            username: Username of the registered user
            role: Role assigned to the user
            registration_source: How the account came to exist
            correlation_id: Optional correlation ID for tracking

        Returns:
            UserRegisteredEvent: New event instance
        """
        return cls(
            occurred_at=occurred_at,
            user_id=user_id,
            correlation_id=correlation_id,
            username=username,
            role=role,
            registration_source=registration_source,
        )


@dataclass(frozen=True)
class EmailVerifiedEvent(BaseDomainEvent):
    username: str


@dataclass(frozen=True)
class UserLoggedInEvent(BaseDomainEvent):
    """Event published after a successful password login.

    Attributes:
        username: Username of the user
        remember_me: Whether the long-lived access token was requested
    """

    username: str
    remember_me: bool = False


@dataclass(frozen=True)
class AuthenticationFailedEvent(BaseDomainEvent):
    """Event published when a login attempt is rejected.

    ``user_id`` is None when the username is unknown.

    Attributes:
        username: Username that was attempted
        failure_reason: Error code of the rejection
        failed_attempts: Counter value after this attempt
    """

    username: str
    failure_reason: str
    failed_attempts: int = 0


@dataclass(frozen=True)
class TokenRefreshedEvent(BaseDomainEvent):
    username: str


@dataclass(frozen=True)
class UserLoggedOutEvent(BaseDomainEvent):
    username: str


@dataclass(frozen=True)
class GoogleAccountFederatedEvent(BaseDomainEvent):
    """Event published after a Google identity has been resolved to a local user.

    Attributes:
        username: Local username
        is_new_account: True when the account was created by this federation
        flow: ``id_token`` or ``authorization_code``
    """

    username: str
    is_new_account: bool
    flow: str = "id_token"
