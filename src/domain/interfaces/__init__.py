"""Domain Interfaces for dependency inversion.

The domain depends on these abstractions; infrastructure provides the
implementations:

- Repositories: the credential store
- Email: verification, reset and unlock notifications
- OAuth: Google identity verification
- Infrastructure: events and the clock
"""

from .email import IEmailService
from .infrastructure import IClock, IEventPublisher
from .oauth import IGoogleIdentityVerifier
from .repositories import IUserRepository

__all__ = [
    "IUserRepository",
    "IEmailService",
    "IGoogleIdentityVerifier",
    "IEventPublisher",
    "IClock",
]
