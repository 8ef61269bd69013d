"""Integration tests for the SQLAlchemy credential store on SQLite."""

from datetime import datetime, timedelta

import pytest

from src.core.exceptions import AdminAlreadyExistsError, DuplicateUserError
from src.domain.entities.user import Role, UserStatus
from src.infrastructure.repositories.user_repository import UserRepository
from tests.factories import create_fake_user

pytestmark = pytest.mark.integration


def _new_user(email, **overrides):
    user = create_fake_user(email=email, **overrides)
    user.id = None
    return user


@pytest.fixture
def repository(db_session):
    return UserRepository(db_session)


class TestLookups:
    async def test_username_and_email_lookups_ignore_case(self, repository):
        # Arrange
        await repository.add(_new_user("Mixed.Case@Heritage.rw"))
        await repository.commit()

        # Act
        by_username = await repository.get_by_username("MIXED.CASE@heritage.RW")
        by_email = await repository.get_by_email("  mixed.case@HERITAGE.rw ", for_update=True)

        # Assert
        assert by_username is not None
        assert by_username is by_email
        assert await repository.exists_by_email("MIXED.case@heritage.rw")
        assert await repository.exists_by_username("mixed.case@heritage.rw")

    async def test_blank_lookups_return_none(self, repository):
        assert await repository.get_by_username("  ") is None
        assert await repository.get_by_email("") is None

    async def test_token_lookups(self, repository):
        await repository.add(
            _new_user("tokens@heritage.rw", email_verification_token="v-1", reset_token="r-1", unlock_token="u-1")
        )
        await repository.commit()

        assert (await repository.get_by_verification_token("v-1")).email == "tokens@heritage.rw"
        assert (await repository.get_by_reset_token("r-1")).email == "tokens@heritage.rw"
        assert (await repository.get_by_unlock_token("u-1", for_update=True)).email == "tokens@heritage.rw"
        assert await repository.get_by_reset_token("v-1") is None

    async def test_role_queries(self, repository):
        await repository.add(_new_user("manager1.heritage@heritage.rw", role=Role.HERITAGE_MANAGER))
        await repository.add(_new_user("manager2.heritage@heritage.rw", role=Role.HERITAGE_MANAGER))
        await repository.commit()

        assert await repository.count_by_role(Role.HERITAGE_MANAGER) == 2
        assert await repository.count_by_role(Role.SYSTEM_ADMINISTRATOR) == 0
        assert await repository.exists_by_email_and_role("MANAGER1.heritage@heritage.rw", Role.HERITAGE_MANAGER)
        assert not await repository.exists_by_email_and_role("manager1.heritage@heritage.rw", Role.CONTENT_MANAGER)

    async def test_find_by_full_name(self, repository):
        await repository.add(_new_user("jean@heritage.rw", first_name="Jean", last_name="Habimana"))
        await repository.add(_new_user("other@heritage.rw", first_name="Jean", last_name="Mugisha"))
        await repository.commit()

        matches = await repository.find_by_full_name(" jean ", "HABIMANA")

        assert [m.email for m in matches] == ["jean@heritage.rw"]


class TestUniqueness:
    async def test_duplicate_email_is_rejected_without_poisoning_the_transaction(self, repository):
        # Arrange
        await repository.add(_new_user("taken@heritage.rw"))

        # Act
        with pytest.raises(DuplicateUserError):
            await repository.add(_new_user("taken@heritage.rw"))
        await repository.add(_new_user("free@heritage.rw"))
        await repository.commit()

        # Assert
        assert await repository.exists_by_email("taken@heritage.rw")
        assert await repository.exists_by_email("free@heritage.rw")

    async def test_second_administrator_is_rejected_by_index(self, repository):
        await repository.add(_new_user("admin.admin@heritage.rw", role=Role.SYSTEM_ADMINISTRATOR))
        await repository.commit()

        with pytest.raises(AdminAlreadyExistsError):
            await repository.add(_new_user("admin.admin@elsewhere.org", role=Role.SYSTEM_ADMINISTRATOR))

        assert await repository.count_by_role(Role.SYSTEM_ADMINISTRATOR) == 1

    async def test_create_if_absent_returns_existing_row_on_conflict(self, repository):
        # Arrange
        first, created = await repository.create_if_absent(_new_user("race@gmail.com"))
        await repository.commit()
        first_id = first.id

        # Act
        second, created_again = await repository.create_if_absent(_new_user("race@gmail.com"))

        # Assert
        assert created is True
        assert created_again is False
        assert second.id == first_id

    async def test_soft_deleted_rows_keep_their_address(self, repository):
        await repository.add(_new_user("gone@heritage.rw", status=UserStatus.DELETED))
        await repository.commit()

        with pytest.raises(DuplicateUserError):
            await repository.add(_new_user("gone@heritage.rw"))


class TestRefreshTokenRotation:
    async def test_compare_and_swap(self, repository):
        # Arrange
        expires = datetime(2026, 3, 8, 9, 0, 0)
        user = await repository.add(
            _new_user("session@heritage.rw", refresh_token="old", refresh_token_expires_at=expires)
        )
        await repository.commit()
        user_id = user.id

        # Act
        first = await repository.rotate_refresh_token(user_id, "old", "new", expires + timedelta(days=1))
        replay = await repository.rotate_refresh_token(user_id, "old", "newer", expires + timedelta(days=2))
        await repository.commit()

        # Assert
        assert first is True
        assert replay is False
        stored = await repository.get_by_id(user_id)
        assert stored.refresh_token == "new"
        assert stored.refresh_token_expires_at == expires + timedelta(days=1)
