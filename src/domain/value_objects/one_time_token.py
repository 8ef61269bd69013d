"""One-time tokens used for email verification, password reset and unlock."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class OneTimeToken:
    """A random token value paired with its absolute expiry.

    The value is a UUID4 string. It is only meaningful while it is stored on
    the user row; consuming the token clears it there.
    """

    value: str
    expires_at: datetime

    @classmethod
    def generate(cls, now: datetime, lifetime: timedelta) -> "OneTimeToken":
        return cls(value=str(uuid.uuid4()), expires_at=now + lifetime)

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """A missing expiry counts as expired."""
    return expires_at is None or expires_at < now
