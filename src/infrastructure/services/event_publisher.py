"""Event Publisher Infrastructure Service.

Concrete implementation of `IEventPublisher`. Events are published after the
operation that produced them has committed, so a subscriber failure is logged
and never undoes or fails the operation.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Type, Union

import structlog

from src.domain.events.base import BaseDomainEvent
from src.domain.interfaces.infrastructure import IEventPublisher

logger = structlog.get_logger(__name__)

Subscriber = Callable[[BaseDomainEvent], Union[None, Awaitable[None]]]


class InMemoryEventPublisher(IEventPublisher):
    """In-process event publisher.

    Keeps every published event for inspection and fans events out to
    registered subscribers, which may be plain or async callables.
    """

    def __init__(self):
        self._published_events: List[BaseDomainEvent] = []
        self._subscribers: List[Subscriber] = []

    async def publish(self, event: BaseDomainEvent) -> None:
        """Publish a single domain event.

        Args:
            event: Domain event to publish
        """
        self._published_events.append(event)
        event_type = type(event).__name__
        for subscriber in self._subscribers:
            try:
                outcome = subscriber(event)
                if asyncio.iscoroutine(outcome):
                    await outcome
            except Exception as e:
                logger.error("Event subscriber failed", event_type=event_type, error=str(e))

        logger.info(
            "Domain event published",
            event_type=event_type,
            user_id=event.user_id,
            correlation_id=event.correlation_id,
            occurred_at=event.occurred_at.isoformat(),
        )

    async def publish_many(self, events: List[BaseDomainEvent]) -> None:
        for event in events:
            await self.publish(event)

    def add_subscriber(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)
        logger.debug("Event subscriber added")

    def get_published_events(
        self,
        event_type: Optional[Type[BaseDomainEvent]] = None,
        user_id: Optional[int] = None,
    ) -> List[BaseDomainEvent]:
        """Get published events with optional filtering.

        Args:
            event_type: Only events of this class
            user_id: Only events about this user

        Returns:
            List[BaseDomainEvent]: Matching events in publication order
        """
        events = self._published_events
        if event_type is not None:
            events = [e for e in events if isinstance(e, event_type)]
        if user_id is not None:
            events = [e for e in events if e.user_id == user_id]
        return list(events)

    def clear_published_events(self) -> None:
        self._published_events.clear()
