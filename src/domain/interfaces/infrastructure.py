"""Infrastructure service interfaces for cross-cutting concerns.

- Event Publisher: domain event publishing and distribution
- Clock: the single source of "now" for token expiry and lockout decisions
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.domain.events.base import BaseDomainEvent


class IEventPublisher(ABC):
    """Interface for domain event publishing and distribution."""

    @abstractmethod
    async def publish(self, event: BaseDomainEvent) -> None:
        """Publishes a single domain event.

        Args:
            event: The `BaseDomainEvent` to be published to all listeners.
        """
        raise NotImplementedError

    @abstractmethod
    async def publish_many(self, events: List[BaseDomainEvent]) -> None:
        raise NotImplementedError


class IClock(ABC):
    """Source of the current time.

    Returns naive UTC datetimes, matching what the credential store persists.
    Tests inject a frozen clock to exercise expiry edges deterministically.
    """

    @abstractmethod
    def now(self) -> datetime:
        raise NotImplementedError
