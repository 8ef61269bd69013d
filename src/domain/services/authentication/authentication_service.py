"""Authentication Orchestration Service.

This service ties the password policy, role assignment, lockout state
machine, token service and Google federation together into the credential
and session flows of the platform:

- register / verify_email / resend_verification
- login / refresh / logout
- forgot_password / reset_password
- request_unlock / unlock / admin_unlock
- federate_google / federate_google_callback
- admin_create_user / first_time_admin_setup

Every public flow returns ``Success(value)`` or ``Failure(error)``. Expected
outcomes (bad input, conflicts, rejected credentials, unknown tokens) come
back as ``Failure`` after the transaction is rolled back. Infrastructure
faults (`DatabaseError`, `EmailServiceError`) are raised.

Each flow ends with exactly one commit. The few failure paths that must
persist state (the failed-attempt counter, clearing an expired token) commit
explicitly before raising.
"""

from datetime import timedelta
from typing import Awaitable, Callable, List, Optional, TypeVar

import structlog

from src.core.config.settings import settings
from src.core.exceptions import (
    DOMAIN_ERRORS,
    AccountDisabledError,
    AccountLockedError,
    AdminAlreadyExistsError,
    DeletedUserRecreationError,
    DuplicateFullNameError,
    DuplicateUserError,
    HeritageGuardError,
    InvalidCredentialsError,
    InvalidRoleError,
    InvalidTokenError,
    PermissionDeniedError,
    TokenExpiredError,
    UserNotFoundError,
    ValidationError,
)
from src.core.result import Failure, Result, Success
from src.domain.entities.user import Role, User, UserStatus
from src.domain.events import (
    AccountLockedEvent,
    AccountUnlockedEvent,
    AuthenticationFailedEvent,
    BaseDomainEvent,
    EmailVerifiedEvent,
    GoogleAccountFederatedEvent,
    PasswordResetCompletedEvent,
    PasswordResetRequestedEvent,
    TokenRefreshedEvent,
    UserLoggedInEvent,
    UserLoggedOutEvent,
    UserRegisteredEvent,
)
from src.domain.interfaces.email import IEmailService
from src.domain.interfaces.infrastructure import IClock, IEventPublisher
from src.domain.interfaces.repositories import IUserRepository
from src.domain.services.auth.lockout import LockoutStateMachine
from src.domain.services.auth.oauth import OAuthFederationAdapter
from src.domain.services.auth.password_policy import PasswordPolicyEngine
from src.domain.services.auth.role_policy import RoleAssignmentPolicy
from src.domain.services.auth.token import TokenService
from src.domain.services.authentication.results import (
    AdminCreationResult,
    FederationResult,
    LoginResult,
    PasswordResetResult,
    RegistrationResult,
    SetupResult,
    TokenPair,
)
from src.domain.value_objects.actor import Actor
from src.domain.value_objects.email import Email, mask_email
from src.domain.value_objects.one_time_token import OneTimeToken, is_expired
from src.domain.value_objects.profile import UserProfile
from src.utils.i18n import get_translated_message, normalize_language
from src.utils.security import hash_password, verify_password

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SELF_REGISTRATION = "SELF_REGISTRATION"
SYSTEM_SETUP = "SYSTEM"
ADMIN_CREATABLE_STATUSES = (UserStatus.ACTIVE, UserStatus.SUSPENDED)


class AuthenticationService:
    """Orchestrates the credential and session lifecycle.

    The service holds no per-request state. Callers pass the acting identity
    explicitly to privileged flows as an `Actor`.

    Args:
        user_repository: Credential store
        email_service: Sender for verification, reset and unlock emails
        token_service: JWT issuance
        password_policy: Password validation and scoring
        role_policy: Email-pattern role assignment
        lockout: Failed-login state machine
        oauth_adapter: Google identity resolution
        event_publisher: Domain event sink
        clock: Source of "now"
        reveal_unknown_email: When true, forgot-password and unlock requests
            for unknown addresses fail with `UserNotFoundError` instead of
            succeeding silently
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        email_service: IEmailService,
        token_service: TokenService,
        password_policy: PasswordPolicyEngine,
        role_policy: RoleAssignmentPolicy,
        lockout: LockoutStateMachine,
        oauth_adapter: OAuthFederationAdapter,
        event_publisher: IEventPublisher,
        clock: IClock,
        reveal_unknown_email: Optional[bool] = None,
    ):
        self._users = user_repository
        self._email = email_service
        self._tokens = token_service
        self._password_policy = password_policy
        self._role_policy = role_policy
        self._lockout = lockout
        self._oauth = oauth_adapter
        self._events = event_publisher
        self._clock = clock
        self._reveal_unknown_email = (
            settings.REVEAL_UNKNOWN_EMAIL if reveal_unknown_email is None else reveal_unknown_email
        )
        self._verification_lifetime = timedelta(hours=settings.EMAIL_VERIFICATION_TOKEN_EXPIRE_HOURS)
        self._reset_lifetime = timedelta(hours=settings.PASSWORD_RESET_TOKEN_EXPIRE_HOURS)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _guarded(self, operation: str, action: Callable[[], Awaitable[T]]) -> Result[T, HeritageGuardError]:
        """Run one flow, turning domain errors into ``Failure`` and rolling back."""
        try:
            return Success(await action())
        except DOMAIN_ERRORS as e:
            await self._users.rollback()
            logger.info("Authentication flow rejected", operation=operation, code=e.code)
            return Failure(e)
        except Exception:
            await self._users.rollback()
            logger.error("Authentication flow failed", operation=operation, exc_info=True)
            raise

    async def _publish(self, *events: BaseDomainEvent) -> None:
        await self._events.publish_many(list(events))

    @staticmethod
    def _require(allowed: bool, actor: Actor, operation: str) -> None:
        if not allowed:
            logger.warning(
                "Privileged operation denied",
                operation=operation,
                actor=actor.username,
                role=actor.role.value,
            )
            raise PermissionDeniedError()

    @staticmethod
    def _ensure_active(user: User) -> None:
        if not user.enabled or user.status != UserStatus.ACTIVE:
            raise AccountDisabledError()

    def _new_user(
        self,
        email: Email,
        password: str,
        role: Role,
        profile: Optional[UserProfile],
        created_by: str,
    ) -> User:
        profile = (profile or UserProfile()).normalized()
        return User(
            username=email.value,
            email=email.value,
            hashed_password=hash_password(password),
            role=role,
            first_name=profile.first_name,
            last_name=profile.last_name,
            preferred_language=normalize_language(profile.preferred_language),
            created_by=created_by,
            created_at=self._clock.now(),
        )

    async def _ensure_identity_available(self, email: Email) -> None:
        existing = await self._users.get_by_email(email.value)
        if existing is None and not await self._users.exists_by_username(email.value):
            return
        if existing is not None and existing.is_deleted:
            raise DeletedUserRecreationError()
        raise DuplicateUserError(get_translated_message("email_already_registered"))

    # ------------------------------------------------------------------
    # Registration & verification
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        profile: Optional[UserProfile] = None,
    ) -> Result[RegistrationResult, HeritageGuardError]:
        """Self-service registration.

        Validates the password and derives the role before anything is
        written, persists the user, sends the verification email and issues
        an access token.
        """

        async def action() -> RegistrationResult:
            email_vo = Email(email)
            logger.info("User registration started", email=email_vo.mask_for_logging())

            strength = self._password_policy.enforce(password)
            role = await self._role_policy.determine_role(email_vo.value)
            await self._ensure_identity_available(email_vo)

            user = self._new_user(email_vo, password, role, profile, SELF_REGISTRATION)
            token = OneTimeToken.generate(self._clock.now(), self._verification_lifetime)
            user.email_verification_token = token.value
            user.email_verification_token_expires_at = token.expires_at

            user = await self._users.add(user)
            await self._email.send_verification_email(user, token.value)
            access_token = self._tokens.issue_access_token(user, remember_me=True)
            await self._users.commit()

            logger.info(
                "User registration successful",
                user_id=user.id,
                email=email_vo.mask_for_logging(),
                role=role.value,
            )
            await self._publish(
                UserRegisteredEvent.create(self._clock.now(), user.id, user.username, role.value, "self")
            )
            return RegistrationResult(
                access_token=access_token, role=role, password_strength=strength, user=user
            )

        return await self._guarded("register", action)

    async def verify_email(self, token: str) -> Result[User, HeritageGuardError]:
        async def action() -> User:
            user = await self._users.get_by_verification_token(token, for_update=True) if token else None
            if user is None:
                logger.warning("Invalid verification token used")
                raise InvalidTokenError(
                    get_translated_message("invalid_verification_token"), "invalid_verification_token"
                )
            now = self._clock.now()
            if is_expired(user.email_verification_token_expires_at, now):
                logger.warning("Expired verification token used", user_id=user.id)
                raise TokenExpiredError(
                    get_translated_message("verification_token_expired"), "verification_token_expired"
                )

            user.email_verified = True
            user.email_verification_token = None
            user.email_verification_token_expires_at = None
            user.touch(user.username, now)
            await self._users.save(user)
            await self._users.commit()

            logger.info("Email verified", user_id=user.id)
            await self._publish(
                EmailVerifiedEvent(occurred_at=now, user_id=user.id, correlation_id=None, username=user.username)
            )
            return user

        return await self._guarded("verify_email", action)

    async def resend_verification(self, email: str) -> Result[None, HeritageGuardError]:
        async def action() -> None:
            user = await self._users.get_by_email(email.strip().lower(), for_update=True)
            if user is None:
                raise UserNotFoundError()
            if user.email_verified:
                raise ValidationError(get_translated_message("email_already_verified"), "email_already_verified")

            token = OneTimeToken.generate(self._clock.now(), self._verification_lifetime)
            user.email_verification_token = token.value
            user.email_verification_token_expires_at = token.expires_at
            await self._users.save(user)
            await self._email.send_verification_email(user, token.value)
            await self._users.commit()
            logger.info("Verification email resent", email=mask_email(user.email))

        return await self._guarded("resend_verification", action)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(
        self,
        username: str,
        password: str,
        remember_me: bool = False,
    ) -> Result[LoginResult, HeritageGuardError]:
        """Password login.

        Order of checks: credentials, then status, then lockout. Only a
        failed credential check touches the attempt counter, so a correct
        password never unlocks a LOCKED account and a disabled account's
        counter is left alone.
        """

        async def action() -> LoginResult:
            normalized = (username or "").strip().lower()
            user = await self._users.get_by_username(normalized, for_update=True)
            now = self._clock.now()

            if user is None:
                logger.warning("Login failed - unknown user", username=mask_email(normalized))
                await self._publish(
                    AuthenticationFailedEvent(
                        occurred_at=now,
                        user_id=None,
                        correlation_id=None,
                        username=normalized,
                        failure_reason=InvalidCredentialsError.code,
                    )
                )
                raise InvalidCredentialsError()

            if not verify_password(password or "", user.hashed_password):
                locked_now = self._lockout.record_failure(user, now)
                await self._users.save(user)
                await self._users.commit()
                logger.warning(
                    "Login failed - bad credentials",
                    user_id=user.id,
                    failed_attempts=user.failed_login_attempts,
                )
                events: List[BaseDomainEvent] = [
                    AuthenticationFailedEvent(
                        occurred_at=now,
                        user_id=user.id,
                        correlation_id=None,
                        username=user.username,
                        failure_reason=InvalidCredentialsError.code,
                        failed_attempts=user.failed_login_attempts,
                    )
                ]
                if locked_now:
                    events.append(
                        AccountLockedEvent(
                            occurred_at=now,
                            user_id=user.id,
                            correlation_id=None,
                            username=user.username,
                            failed_attempts=user.failed_login_attempts,
                        )
                    )
                await self._publish(*events)
                raise InvalidCredentialsError()

            self._ensure_active(user)
            if self._lockout.is_locked(user):
                raise AccountLockedError()

            access_token = self._tokens.issue_access_token(user, remember_me=remember_me)
            refresh = self._tokens.issue_refresh_token(user)

            self._lockout.record_success(user)
            user.last_login = now
            user.refresh_token = refresh.value
            user.refresh_token_expires_at = refresh.expires_at
            await self._users.save(user)
            await self._users.commit()

            logger.info("User logged in", user_id=user.id, remember_me=remember_me)
            await self._publish(
                UserLoggedInEvent(
                    occurred_at=now,
                    user_id=user.id,
                    correlation_id=None,
                    username=user.username,
                    remember_me=remember_me,
                )
            )
            return LoginResult(access_token=access_token, refresh_token=refresh.value, user=user)

        return await self._guarded("login", action)

    async def refresh(self, refresh_token: str) -> Result[TokenPair, HeritageGuardError]:
        """Rotate a refresh token.

        The stored token and its stored expiry decide validity. The swap is a
        compare-and-swap on the stored value, so of two concurrent refreshes
        with the same token only one succeeds.
        """

        async def action() -> TokenPair:
            if not refresh_token or not refresh_token.strip():
                raise InvalidTokenError(get_translated_message("refresh_token_required"), "invalid_refresh_token")

            username = self._tokens.extract_identity(refresh_token)
            user = await self._users.get_by_username(username, for_update=True)
            if user is None:
                logger.warning("Refresh token subject not found")
                raise InvalidTokenError(get_translated_message("invalid_refresh_token"), "invalid_refresh_token")

            self._ensure_active(user)
            if self._lockout.is_locked(user):
                raise AccountLockedError()

            if user.refresh_token != refresh_token:
                logger.warning("Refresh token mismatch", user_id=user.id)
                raise InvalidTokenError(get_translated_message("invalid_refresh_token"), "invalid_refresh_token")

            now = self._clock.now()
            if is_expired(user.refresh_token_expires_at, now):
                user.refresh_token = None
                user.refresh_token_expires_at = None
                await self._users.save(user)
                await self._users.commit()
                logger.warning("Refresh token expired", user_id=user.id)
                raise TokenExpiredError(get_translated_message("refresh_token_expired"), "refresh_token_expired")

            access_token = self._tokens.issue_access_token(user)
            new_refresh = self._tokens.issue_refresh_token(user)
            swapped = await self._users.rotate_refresh_token(
                user.id, refresh_token, new_refresh.value, new_refresh.expires_at
            )
            if not swapped:
                logger.warning("Refresh token already rotated", user_id=user.id)
                raise InvalidTokenError(get_translated_message("invalid_refresh_token"), "invalid_refresh_token")
            await self._users.commit()

            logger.info("Token refresh successful", user_id=user.id)
            await self._publish(
                TokenRefreshedEvent(occurred_at=now, user_id=user.id, correlation_id=None, username=user.username)
            )
            return TokenPair(access_token=access_token, refresh_token=new_refresh.value)

        return await self._guarded("refresh", action)

    async def logout(self, username: str) -> Result[None, HeritageGuardError]:
        async def action() -> None:
            user = await self._users.get_by_username(username.strip().lower(), for_update=True)
            if user is None:
                raise UserNotFoundError()
            user.refresh_token = None
            user.refresh_token_expires_at = None
            await self._users.save(user)
            await self._users.commit()
            logger.info("User logged out", user_id=user.id)
            await self._publish(
                UserLoggedOutEvent(
                    occurred_at=self._clock.now(), user_id=user.id, correlation_id=None, username=user.username
                )
            )

        return await self._guarded("logout", action)

    # ------------------------------------------------------------------
    # Password recovery
    # ------------------------------------------------------------------

    async def forgot_password(self, email: str) -> Result[None, HeritageGuardError]:
        """Issue a reset token and email the reset link.

        Unknown addresses succeed silently unless ``reveal_unknown_email`` is set.
        """

        async def action() -> None:
            normalized = (email or "").strip().lower()
            user = await self._users.get_by_email(normalized, for_update=True)
            if user is None:
                logger.info("Password reset requested for unknown email", email=mask_email(normalized))
                if self._reveal_unknown_email:
                    raise UserNotFoundError()
                return

            now = self._clock.now()
            token = OneTimeToken.generate(now, self._reset_lifetime)
            user.reset_token = token.value
            user.reset_token_expires_at = token.expires_at
            await self._users.save(user)
            await self._email.send_password_reset_email(user, token.value)
            await self._users.commit()

            logger.info("Password reset email sent", email=mask_email(user.email))
            await self._publish(
                PasswordResetRequestedEvent(
                    occurred_at=now,
                    user_id=user.id,
                    correlation_id=None,
                    username=user.username,
                    token_expires_at=token.expires_at,
                )
            )

        return await self._guarded("forgot_password", action)

    async def reset_password(self, reset_token: str, new_password: str) -> Result[PasswordResetResult, HeritageGuardError]:
        """Consume a reset token and set a new password.

        The new password is validated before the token is looked at. A
        successful reset also ends the current refresh-token session.
        """

        async def action() -> PasswordResetResult:
            strength = self._password_policy.enforce(new_password)

            user = await self._users.get_by_reset_token(reset_token, for_update=True) if reset_token else None
            if user is None:
                raise InvalidTokenError(get_translated_message("invalid_reset_token"), "invalid_reset_token")

            now = self._clock.now()
            if is_expired(user.reset_token_expires_at, now):
                user.reset_token = None
                user.reset_token_expires_at = None
                await self._users.save(user)
                await self._users.commit()
                raise TokenExpiredError(get_translated_message("reset_token_expired"), "reset_token_expired")

            user.hashed_password = hash_password(new_password)
            user.reset_token = None
            user.reset_token_expires_at = None
            user.refresh_token = None
            user.refresh_token_expires_at = None
            user.touch(user.username, now)
            await self._users.save(user)
            await self._users.commit()

            logger.info("Password reset completed", user_id=user.id)
            await self._publish(
                PasswordResetCompletedEvent(occurred_at=now, user_id=user.id, correlation_id=None, username=user.username)
            )
            return PasswordResetResult(password_strength=strength, username=user.username)

        return await self._guarded("reset_password", action)

    # ------------------------------------------------------------------
    # Unlock
    # ------------------------------------------------------------------

    async def request_unlock(self, email: str) -> Result[None, HeritageGuardError]:
        """Email a self-service unlock link to a locked, enabled account.

        Accounts that are not locked, or are locked because they were
        disabled, get nothing.
        """

        async def action() -> None:
            normalized = (email or "").strip().lower()
            user = await self._users.get_by_email(normalized, for_update=True)
            if user is None:
                logger.info("Unlock requested for unknown email", email=mask_email(normalized))
                if self._reveal_unknown_email:
                    raise UserNotFoundError()
                return

            if not self._lockout.is_locked(user) or not user.enabled or user.status != UserStatus.ACTIVE:
                logger.info("Unlock requested for account that is not self-unlockable", user_id=user.id)
                return

            token = self._lockout.issue_unlock_token(user, self._clock.now())
            await self._users.save(user)
            await self._email.send_unlock_email(user, token.value)
            await self._users.commit()
            logger.info("Unlock instructions sent", email=mask_email(user.email))

        return await self._guarded("request_unlock", action)

    async def unlock(self, unlock_token: str) -> Result[None, HeritageGuardError]:
        async def action() -> None:
            user = await self._users.get_by_unlock_token(unlock_token, for_update=True) if unlock_token else None
            if user is None:
                raise InvalidTokenError(get_translated_message("invalid_unlock_token"), "invalid_unlock_token")
            self._ensure_active(user)

            now = self._clock.now()
            try:
                self._lockout.unlock_with_token(user, unlock_token, now)
            except TokenExpiredError:
                await self._users.save(user)
                await self._users.commit()
                raise

            await self._users.save(user)
            await self._users.commit()
            logger.info("Account unlocked with token", user_id=user.id)
            await self._publish(
                AccountUnlockedEvent(
                    occurred_at=now, user_id=user.id, correlation_id=None, username=user.username, unlocked_by="self"
                )
            )

        return await self._guarded("unlock", action)

    async def admin_unlock(self, actor: Actor, username: str) -> Result[User, HeritageGuardError]:
        async def action() -> User:
            self._require(actor.role.can_unlock_accounts(), actor, "admin_unlock")
            user = await self._users.get_by_username(username.strip().lower(), for_update=True)
            if user is None:
                logger.warning("Admin unlock requested for non-existent user", actor=actor.username)
                raise UserNotFoundError()

            now = self._clock.now()
            self._lockout.force_unlock(user)
            user.touch(actor.username, now)
            await self._users.save(user)
            await self._users.commit()

            logger.info("Account unlocked by administrator", user_id=user.id, actor=actor.username)
            await self._publish(
                AccountUnlockedEvent(
                    occurred_at=now,
                    user_id=user.id,
                    correlation_id=None,
                    username=user.username,
                    unlocked_by=actor.username,
                )
            )
            return user

        return await self._guarded("admin_unlock", action)

    # ------------------------------------------------------------------
    # Google federation
    # ------------------------------------------------------------------

    async def federate_google(self, identity_token: str) -> Result[FederationResult, HeritageGuardError]:
        """Sign in with a Google ID token. New accounts are COMMUNITY_MEMBER."""

        async def action() -> FederationResult:
            user, is_new = await self._oauth.resolve(identity_token)
            return await self._finish_federation(user, is_new, "id_token")

        return await self._guarded("federate_google", action)

    async def federate_google_callback(self, code: str) -> Result[FederationResult, HeritageGuardError]:
        """Sign in with an authorization code. New accounts get their pattern-derived role."""

        async def action() -> FederationResult:
            user, is_new = await self._oauth.resolve_authorization_code(code)
            return await self._finish_federation(user, is_new, "authorization_code")

        return await self._guarded("federate_google_callback", action)

    async def _finish_federation(self, user: User, is_new: bool, flow: str) -> FederationResult:
        self._ensure_active(user)
        access_token = self._tokens.issue_access_token(user)
        await self._users.commit()

        now = self._clock.now()
        events: List[BaseDomainEvent] = [
            GoogleAccountFederatedEvent(
                occurred_at=now,
                user_id=user.id,
                correlation_id=None,
                username=user.username,
                is_new_account=is_new,
                flow=flow,
            )
        ]
        if is_new:
            events.append(UserRegisteredEvent.create(now, user.id, user.username, user.role.value, "google"))
        await self._publish(*events)
        return FederationResult(access_token=access_token, user=user, is_new_account=is_new)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def has_any_admin(self) -> bool:
        return await self._role_policy.has_admin()

    async def admin_create_user(
        self,
        actor: Actor,
        email: str,
        password: str,
        role: Optional[Role],
        status: Optional[UserStatus] = None,
        profile: Optional[UserProfile] = None,
    ) -> Result[AdminCreationResult, HeritageGuardError]:
        """Create a manager account on behalf of an administrator.

        Only HERITAGE_MANAGER and CONTENT_MANAGER can be created here, and the
        address must carry the matching pattern. The account is pre-verified.
        ``status`` may be ACTIVE or SUSPENDED; anything else becomes ACTIVE.
        """

        async def action() -> AdminCreationResult:
            self._require(actor.role.can_create_users(), actor, "admin_create_user")

            if role is None:
                raise InvalidRoleError(get_translated_message("role_required"), "role_required")
            if role is Role.SYSTEM_ADMINISTRATOR:
                raise InvalidRoleError(get_translated_message("admin_creation_not_allowed"), "role_not_creatable")
            if role is Role.COMMUNITY_MEMBER:
                raise InvalidRoleError(get_translated_message("community_members_self_register"), "role_not_creatable")
            if not role.is_admin_creatable():
                raise InvalidRoleError(get_translated_message("guest_no_account"), "role_not_creatable")

            email_vo = Email(email)
            await self._ensure_identity_available(email_vo)
            await self._role_policy.validate_email_role_consistency(email_vo.value, role)
            self._password_policy.enforce(password)

            normalized_profile = (profile or UserProfile()).normalized()
            if normalized_profile.first_name and normalized_profile.last_name:
                matches = await self._users.find_by_full_name(
                    normalized_profile.first_name, normalized_profile.last_name
                )
                if any(m.is_deleted for m in matches):
                    raise DeletedUserRecreationError()
                if matches:
                    raise DuplicateFullNameError()

            now = self._clock.now()
            effective_status = status if status in ADMIN_CREATABLE_STATUSES else UserStatus.ACTIVE
            user = self._new_user(email_vo, password, role, normalized_profile, actor.username)
            user.email_verified = True
            user.apply_status(effective_status, get_translated_message("status_reason_admin_created"), actor.username, now)

            user = await self._users.add(user)
            access_token = self._tokens.issue_access_token(user)
            await self._users.commit()

            logger.info(
                "User created by administrator",
                user_id=user.id,
                email=email_vo.mask_for_logging(),
                role=role.value,
                status=effective_status.value,
                actor=actor.username,
            )
            await self._publish(UserRegisteredEvent.create(now, user.id, user.username, role.value, "admin"))
            return AdminCreationResult(access_token=access_token, role=role, user=user)

        return await self._guarded("admin_create_user", action)

    async def first_time_admin_setup(
        self,
        email: str,
        password: str,
        profile: Optional[UserProfile] = None,
    ) -> Result[SetupResult, HeritageGuardError]:
        """Create the one system administrator. Only possible while none exists.

        Two concurrent setups are settled by the store's single-administrator
        index; the loser gets `AdminAlreadyExistsError`.
        """

        async def action() -> SetupResult:
            if await self._role_policy.has_admin():
                raise AdminAlreadyExistsError()

            email_vo = Email(email)
            await self._role_policy.validate_email_role_consistency(email_vo.value, Role.SYSTEM_ADMINISTRATOR)
            self._password_policy.enforce(password)
            await self._ensure_identity_available(email_vo)

            user = self._new_user(email_vo, password, Role.SYSTEM_ADMINISTRATOR, profile, SYSTEM_SETUP)
            user.email_verified = True
            user = await self._users.add(user)
            access_token = self._tokens.issue_access_token(user)
            await self._users.commit()

            logger.info("System administrator created", user_id=user.id, email=email_vo.mask_for_logging())
            await self._publish(
                UserRegisteredEvent.create(
                    self._clock.now(), user.id, user.username, Role.SYSTEM_ADMINISTRATOR.value, "setup"
                )
            )
            return SetupResult(access_token=access_token, user=user)

        return await self._guarded("first_time_admin_setup", action)
