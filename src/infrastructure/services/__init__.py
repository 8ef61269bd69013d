"""Infrastructure Services.

Concrete implementations of the domain's service interfaces:

- Authentication: Google identity verification
- Email: template rendering and delivery
- Events: in-process domain event publishing
- Clock: wall-clock time source
"""

from .authentication import GoogleIdentityVerifier
from .clock import SystemClock
from .email.email_service import EmailService
from .event_publisher import InMemoryEventPublisher

__all__ = [
    "GoogleIdentityVerifier",
    "SystemClock",
    "EmailService",
    "InMemoryEventPublisher",
]
