from datetime import datetime, timezone

from src.domain.interfaces.infrastructure import IClock


class SystemClock(IClock):
    """Wall clock in naive UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)
