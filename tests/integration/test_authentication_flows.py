"""End-to-end credential and session flows against a real SQLite store.

Only the email sender and the Google verifier are mocked. Users are
re-read through the repository after a failed flow, since the rollback
expires everything the session holds.
"""

import pytest

from src.core.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    AdminAlreadyExistsError,
    DeletedUserRecreationError,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    ManagerLimitError,
    PasswordPolicyError,
    RoleConflictError,
    TokenExpiredError,
)
from src.core.result import Failure, Success
from src.domain.entities.user import Role, UserStatus
from src.domain.events import AccountLockedEvent, UserStatusChangedEvent
from src.domain.interfaces.email import IEmailService
from src.domain.interfaces.oauth import IGoogleIdentityVerifier
from src.domain.services.auth.role_policy import RoleAssignmentPolicy
from src.domain.value_objects.actor import Actor
from src.domain.value_objects.google_identity import GoogleIdentity
from src.infrastructure.dependency_injection.auth_dependencies import (
    build_authentication_service,
    build_user_status_service,
)
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.services.event_publisher import InMemoryEventPublisher
from src.utils.i18n import get_translated_message

pytestmark = pytest.mark.integration

PASSWORD = "Heritage#Vault42"
NEW_PASSWORD = "Museum&Archive77"
WRONG_PASSWORD = "Wrong#Password1"
ADMIN = Actor(username="admin.admin@heritage.rw", role=Role.SYSTEM_ADMINISTRATOR)


def _failure_of(result, error_cls):
    assert isinstance(result, Failure), f"expected Failure, got {result!r}"
    assert isinstance(result.error, error_cls), f"expected {error_cls.__name__}, got {result.error!r}"
    return result.error


@pytest.fixture
def email_service(mocker):
    return mocker.AsyncMock(spec=IEmailService)


@pytest.fixture
def google_verifier(mocker):
    return mocker.AsyncMock(spec=IGoogleIdentityVerifier)


@pytest.fixture
def events():
    return InMemoryEventPublisher()


@pytest.fixture
def auth_service(db_session, email_service, google_verifier, events, clock):
    return build_authentication_service(
        db_session,
        email_service=email_service,
        google_verifier=google_verifier,
        event_publisher=events,
        clock=clock,
    )


@pytest.fixture
def status_service(db_session, events, clock):
    return build_user_status_service(db_session, event_publisher=events, clock=clock)


@pytest.fixture
def repository(db_session):
    return UserRepository(db_session)


async def _register(auth_service, email, password=PASSWORD) -> int:
    result = await auth_service.register(email, password)
    assert isinstance(result, Success), result
    return result.value.user.id


class TestSessionLifecycle:
    async def test_register_verify_login_refresh_logout(self, auth_service, email_service, clock):
        # Register and verify
        await _register(auth_service, "Ada@Heritage.rw")
        verification_token = email_service.send_verification_email.await_args.args[1]
        assert isinstance(await auth_service.verify_email(verification_token), Success)
        assert isinstance(await auth_service.verify_email(verification_token), Failure)

        # Login
        login = await auth_service.login("ADA@heritage.rw", PASSWORD)
        assert isinstance(login, Success)
        first_refresh = login.value.refresh_token

        # Rotate, then replay the consumed token
        clock.advance(minutes=10)
        rotated = await auth_service.refresh(first_refresh)
        assert isinstance(rotated, Success)
        replay = await auth_service.refresh(first_refresh)
        assert replay.error.code == "invalid_refresh_token"
        rotated_again = await auth_service.refresh(rotated.value.refresh_token)
        assert isinstance(rotated_again, Success)

        # Logout ends the session
        assert isinstance(await auth_service.logout("ada@heritage.rw"), Success)
        after_logout = await auth_service.refresh(rotated_again.value.refresh_token)
        assert after_logout.error.code == "invalid_refresh_token"

    async def test_stored_refresh_expiry_is_authoritative(self, auth_service, repository, clock):
        await _register(auth_service, "expiry@heritage.rw")
        refresh_token = (await auth_service.login("expiry@heritage.rw", PASSWORD)).value.refresh_token

        clock.advance(days=7, seconds=1)

        _failure_of(await auth_service.refresh(refresh_token), TokenExpiredError)
        stored = await repository.get_by_email("expiry@heritage.rw")
        assert stored.refresh_token is None


class TestLockout:
    async def test_five_failures_lock_until_self_unlock(self, auth_service, email_service, repository, events):
        # Arrange
        await _register(auth_service, "locked@heritage.rw")

        # Act: five bad passwords
        for _ in range(5):
            _failure_of(await auth_service.login("locked@heritage.rw", WRONG_PASSWORD), InvalidCredentialsError)

        # Assert: locked, and the right password does not help
        _failure_of(await auth_service.login("locked@heritage.rw", PASSWORD), AccountLockedError)
        stored = await repository.get_by_email("locked@heritage.rw")
        assert stored.account_non_locked is False
        assert stored.failed_login_attempts == 5
        assert len(events.get_published_events(AccountLockedEvent)) == 1

        # Self-service unlock
        assert isinstance(await auth_service.request_unlock("locked@heritage.rw"), Success)
        unlock_token = email_service.send_unlock_email.await_args.args[1]
        assert isinstance(await auth_service.unlock(unlock_token), Success)
        assert isinstance(await auth_service.login("locked@heritage.rw", PASSWORD), Success)
        _failure_of(await auth_service.unlock(unlock_token), InvalidTokenError)

    async def test_admin_unlock(self, auth_service, repository):
        await _register(auth_service, "stuck@heritage.rw")
        for _ in range(5):
            await auth_service.login("stuck@heritage.rw", WRONG_PASSWORD)

        result = await auth_service.admin_unlock(ADMIN, "STUCK@heritage.rw")

        assert isinstance(result, Success)
        assert isinstance(await auth_service.login("stuck@heritage.rw", PASSWORD), Success)

    async def test_disabled_login_leaves_counter_unchanged(self, auth_service, status_service, repository):
        # Arrange
        user_id = await _register(auth_service, "switched-off@heritage.rw")
        assert isinstance(await status_service.set_enabled(ADMIN, user_id, False), Success)

        # Act
        result = await auth_service.login("switched-off@heritage.rw", PASSWORD)

        # Assert
        _failure_of(result, AccountDisabledError)
        stored = await repository.get_by_id(user_id)
        assert stored.failed_login_attempts == 0

    async def test_disabled_account_gets_no_unlock_link(self, auth_service, status_service, email_service):
        user_id = await _register(auth_service, "quiet@heritage.rw")
        await status_service.set_enabled(ADMIN, user_id, False)

        assert isinstance(await auth_service.request_unlock("quiet@heritage.rw"), Success)
        email_service.send_unlock_email.assert_not_awaited()

    async def test_unlock_link_dies_when_account_is_disabled(
        self, auth_service, status_service, email_service, repository
    ):
        # Arrange
        user_id = await _register(auth_service, "revoked@heritage.rw")
        for _ in range(5):
            await auth_service.login("revoked@heritage.rw", WRONG_PASSWORD)
        assert isinstance(await auth_service.request_unlock("revoked@heritage.rw"), Success)
        unlock_token = email_service.send_unlock_email.await_args.args[1]
        assert isinstance(await status_service.disable(ADMIN, user_id, "fraud review"), Success)

        # Act
        result = await auth_service.unlock(unlock_token)

        # Assert
        _failure_of(result, InvalidTokenError)
        stored = await repository.get_by_id(user_id)
        assert stored.account_non_locked is False
        assert stored.unlock_token is None
        assert stored.status is UserStatus.DISABLED


class TestPasswordReset:
    async def test_reset_token_is_single_use(self, auth_service, email_service):
        # Arrange
        await _register(auth_service, "forgetful@heritage.rw")
        assert isinstance(await auth_service.forgot_password("Forgetful@heritage.rw"), Success)
        reset_token = email_service.send_password_reset_email.await_args.args[1]

        # Act
        first = await auth_service.reset_password(reset_token, NEW_PASSWORD)
        reuse = await auth_service.reset_password(reset_token, "Another#Secret99")

        # Assert
        assert isinstance(first, Success)
        assert reuse.error.code == "invalid_reset_token"
        _failure_of(await auth_service.login("forgetful@heritage.rw", PASSWORD), InvalidCredentialsError)
        assert isinstance(await auth_service.login("forgetful@heritage.rw", NEW_PASSWORD), Success)

    async def test_expired_reset_token_is_cleared(self, auth_service, email_service, repository, clock):
        await _register(auth_service, "late@heritage.rw")
        await auth_service.forgot_password("late@heritage.rw")
        reset_token = email_service.send_password_reset_email.await_args.args[1]

        clock.advance(hours=24, seconds=1)

        _failure_of(await auth_service.reset_password(reset_token, NEW_PASSWORD), TokenExpiredError)
        stored = await repository.get_by_email("late@heritage.rw")
        assert stored.reset_token is None

    async def test_unknown_email_is_silent(self, auth_service, email_service):
        assert isinstance(await auth_service.forgot_password("nobody@heritage.rw"), Success)
        email_service.send_password_reset_email.assert_not_awaited()


class TestRegistrationRules:
    async def test_decorated_common_word_is_rejected_for_its_run(self, auth_service, repository):
        error = _failure_of(await auth_service.register("plain@heritage.rw", "Password123!"), PasswordPolicyError)

        assert error.violations == [get_translated_message("password_sequential_chars")]
        assert not await repository.exists_by_email("plain@heritage.rw")

    async def test_manager_limit_and_slots(self, auth_service):
        _failure_of(await auth_service.register("manager11.heritage@heritage.rw", PASSWORD), ManagerLimitError)

        result = await auth_service.register("manager10.heritage@heritage.rw", PASSWORD)
        assert result.value.role is Role.HERITAGE_MANAGER

        _failure_of(await auth_service.register("Manager10.Heritage@heritage.rw", PASSWORD), RoleConflictError)

    async def test_deleted_account_cannot_be_recreated(self, auth_service, status_service, events):
        # Arrange
        user_id = await _register(auth_service, "gone@heritage.rw")
        assert isinstance(await status_service.soft_delete(ADMIN, user_id, "left the project"), Success)

        # Act
        result = await auth_service.register("gone@heritage.rw", PASSWORD)

        # Assert
        _failure_of(result, DeletedUserRecreationError)
        _failure_of(await auth_service.login("gone@heritage.rw", PASSWORD), AccountDisabledError)
        [changed] = events.get_published_events(UserStatusChangedEvent)
        assert changed.new_status == UserStatus.DELETED.value

    async def test_suspension_ends_session_until_reactivated(self, auth_service, status_service):
        user_id = await _register(auth_service, "paused@heritage.rw")
        refresh_token = (await auth_service.login("paused@heritage.rw", PASSWORD)).value.refresh_token

        assert isinstance(await status_service.suspend(ADMIN, user_id), Success)
        _failure_of(await auth_service.refresh(refresh_token), AccountDisabledError)

        assert isinstance(await status_service.reactivate(ADMIN, user_id), Success)
        assert isinstance(await auth_service.login("paused@heritage.rw", PASSWORD), Success)


class TestAdministration:
    async def test_single_administrator(self, auth_service):
        setup = await auth_service.first_time_admin_setup("admin.admin@heritage.rw", PASSWORD)

        assert setup.value.user.role is Role.SYSTEM_ADMINISTRATOR
        assert await auth_service.has_any_admin() is True
        _failure_of(await auth_service.first_time_admin_setup("admin.admin@heritage.rw", PASSWORD), AdminAlreadyExistsError)
        _failure_of(await auth_service.register("admin.admin@elsewhere.org", PASSWORD), AdminAlreadyExistsError)

    async def test_store_rejects_second_admin_when_check_is_bypassed(self, auth_service, repository, mocker):
        # Arrange: a concurrent setup that passed the existence check
        await auth_service.first_time_admin_setup("admin.admin@heritage.rw", PASSWORD)
        mocker.patch.object(RoleAssignmentPolicy, "has_admin", new=mocker.AsyncMock(return_value=False))

        # Act
        result = await auth_service.first_time_admin_setup("admin.admin@elsewhere.org", PASSWORD)

        # Assert
        _failure_of(result, AdminAlreadyExistsError)
        assert await repository.count_by_role(Role.SYSTEM_ADMINISTRATOR) == 1

    async def test_deleted_manager_address_cannot_be_reused(self, auth_service, status_service):
        created = await auth_service.admin_create_user(
            ADMIN, "manager2.heritage@heritage.rw", PASSWORD, Role.HERITAGE_MANAGER
        )
        assert isinstance(await status_service.soft_delete(ADMIN, created.value.user.id), Success)

        result = await auth_service.admin_create_user(
            ADMIN, "manager2.heritage@heritage.rw", PASSWORD, Role.HERITAGE_MANAGER
        )

        _failure_of(result, DeletedUserRecreationError)

    async def test_admin_creates_manager(self, auth_service, repository):
        result = await auth_service.admin_create_user(
            ADMIN, "manager1.content@heritage.rw", PASSWORD, Role.CONTENT_MANAGER
        )

        assert isinstance(result, Success)
        stored = await repository.get_by_email("manager1.content@heritage.rw")
        assert stored.email_verified is True
        assert stored.created_by == ADMIN.username
        assert isinstance(await auth_service.login("manager1.content@heritage.rw", PASSWORD), Success)
        _failure_of(
            await auth_service.admin_create_user(ADMIN, "manager1.content@heritage.rw", PASSWORD, Role.CONTENT_MANAGER),
            DuplicateUserError,
        )


class TestGoogleFederation:
    async def test_first_federation_creates_then_reuses(self, auth_service, google_verifier, repository):
        # Arrange
        google_verifier.verify_id_token.return_value = GoogleIdentity(
            subject="108", email="aline@gmail.com", first_name="Aline", last_name="Uwimana"
        )

        # Act
        first = await auth_service.federate_google("id-token")
        second = await auth_service.federate_google("id-token")

        # Assert
        assert first.value.is_new_account is True
        assert second.value.is_new_account is False
        stored = await repository.get_by_email("aline@gmail.com")
        assert stored.role is Role.COMMUNITY_MEMBER
        assert stored.email_verified is True
        assert await repository.count_by_role(Role.COMMUNITY_MEMBER) == 1

    async def test_federation_links_to_password_account(self, auth_service, google_verifier):
        await _register(auth_service, "jean@heritage.rw")
        google_verifier.verify_id_token.return_value = GoogleIdentity(subject="5", email="jean@heritage.rw")

        result = await auth_service.federate_google("id-token")

        assert result.value.is_new_account is False
        assert isinstance(await auth_service.login("jean@heritage.rw", PASSWORD), Success)

    async def test_code_flow_assigns_pattern_role(self, auth_service, google_verifier):
        google_verifier.exchange_code.return_value = GoogleIdentity(subject="9", email="manager3.content@heritage.rw")

        result = await auth_service.federate_google_callback("auth-code")

        assert result.value.user.role is Role.CONTENT_MANAGER
