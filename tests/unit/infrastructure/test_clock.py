from datetime import datetime, timedelta, timezone

from src.infrastructure.services.clock import SystemClock


def test_system_clock_is_naive_utc():
    now = SystemClock().now()

    assert now.tzinfo is None
    assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - now) < timedelta(seconds=5)
