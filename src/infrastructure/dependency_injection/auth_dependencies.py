"""Composition of the authentication services.

Wires the domain services to their infrastructure implementations for one
database session. Collaborators that hold no per-request state (email
sender, Google verifier, event publisher, clock) may be passed in and shared
across sessions; anything omitted is built from settings.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.interfaces.email import IEmailService
from src.domain.interfaces.infrastructure import IClock, IEventPublisher
from src.domain.interfaces.oauth import IGoogleIdentityVerifier
from src.domain.services.auth.lockout import LockoutStateMachine
from src.domain.services.auth.oauth import OAuthFederationAdapter
from src.domain.services.auth.password_policy import PasswordPolicyEngine
from src.domain.services.auth.role_policy import RoleAssignmentPolicy
from src.domain.services.auth.token import TokenService
from src.domain.services.authentication.authentication_service import AuthenticationService
from src.domain.services.authentication.user_status_service import UserStatusService
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.services.authentication.google import GoogleIdentityVerifier
from src.infrastructure.services.clock import SystemClock
from src.infrastructure.services.email.email_service import EmailService
from src.infrastructure.services.event_publisher import InMemoryEventPublisher


def build_authentication_service(
    session: AsyncSession,
    email_service: Optional[IEmailService] = None,
    google_verifier: Optional[IGoogleIdentityVerifier] = None,
    event_publisher: Optional[IEventPublisher] = None,
    clock: Optional[IClock] = None,
) -> AuthenticationService:
    clock = clock or SystemClock()
    repository = UserRepository(session)
    role_policy = RoleAssignmentPolicy(repository)
    return AuthenticationService(
        user_repository=repository,
        email_service=email_service or EmailService(),
        token_service=TokenService(clock),
        password_policy=PasswordPolicyEngine(),
        role_policy=role_policy,
        lockout=LockoutStateMachine(),
        oauth_adapter=OAuthFederationAdapter(
            google_verifier or GoogleIdentityVerifier(), repository, role_policy, clock
        ),
        event_publisher=event_publisher or InMemoryEventPublisher(),
        clock=clock,
    )


def build_user_status_service(
    session: AsyncSession,
    event_publisher: Optional[IEventPublisher] = None,
    clock: Optional[IClock] = None,
) -> UserStatusService:
    return UserStatusService(
        user_repository=UserRepository(session),
        lockout=LockoutStateMachine(),
        event_publisher=event_publisher or InMemoryEventPublisher(),
        clock=clock or SystemClock(),
    )
