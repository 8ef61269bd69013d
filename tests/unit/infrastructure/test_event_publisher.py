"""Tests for the in-process event publisher."""

from datetime import datetime, timezone

from src.domain.events import UserLoggedInEvent, UserLoggedOutEvent
from src.infrastructure.services.event_publisher import InMemoryEventPublisher

NOW = datetime(2026, 3, 1, 9, 0, 0)


def _logged_in(user_id: int) -> UserLoggedInEvent:
    return UserLoggedInEvent(occurred_at=NOW, user_id=user_id, correlation_id=None, username=f"user{user_id}@example.org")


class TestInMemoryEventPublisher:
    async def test_keeps_events_and_filters(self):
        # Arrange
        publisher = InMemoryEventPublisher()
        logged_out = UserLoggedOutEvent(occurred_at=NOW, user_id=1, correlation_id=None, username="user1@example.org")

        # Act
        await publisher.publish_many([_logged_in(1), _logged_in(2), logged_out])

        # Assert
        assert len(publisher.get_published_events()) == 3
        assert len(publisher.get_published_events(UserLoggedInEvent)) == 2
        assert publisher.get_published_events(user_id=1)[1] is logged_out
        publisher.clear_published_events()
        assert publisher.get_published_events() == []

    async def test_naive_timestamps_become_utc(self):
        assert _logged_in(1).occurred_at.tzinfo is timezone.utc

    async def test_sync_and_async_subscribers(self):
        publisher = InMemoryEventPublisher()
        seen = []

        async def async_subscriber(event):
            seen.append(("async", event.user_id))

        publisher.add_subscriber(lambda event: seen.append(("sync", event.user_id)))
        publisher.add_subscriber(async_subscriber)

        await publisher.publish(_logged_in(7))

        assert seen == [("sync", 7), ("async", 7)]

    async def test_failing_subscriber_does_not_break_publishing(self):
        publisher = InMemoryEventPublisher()
        seen = []

        def broken(event):
            raise RuntimeError("subscriber bug")

        publisher.add_subscriber(broken)
        publisher.add_subscriber(seen.append)

        await publisher.publish(_logged_in(3))

        assert len(seen) == 1
        assert len(publisher.get_published_events()) == 1
