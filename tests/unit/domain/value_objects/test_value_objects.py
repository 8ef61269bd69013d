"""Tests for the small immutable value objects."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta

import pytest

from src.core.exceptions import ValidationError
from src.domain.entities.user import Role
from src.domain.value_objects.actor import Actor
from src.domain.value_objects.email import Email, mask_email
from src.domain.value_objects.google_identity import GoogleIdentity
from src.domain.value_objects.one_time_token import OneTimeToken, is_expired
from src.domain.value_objects.profile import UserProfile
from tests.factories import create_fake_google_claims, create_fake_user

NOW = datetime(2026, 3, 1, 9, 0, 0)


class TestEmail:
    def test_normalises_case_and_whitespace(self):
        email = Email("  Manager1.Heritage@Heritage.RW ")

        assert email.value == "manager1.heritage@heritage.rw"
        assert email == Email("manager1.heritage@heritage.rw")
        assert email.local_part == "manager1.heritage"
        assert email.domain == "heritage.rw"

    @pytest.mark.parametrize("value", ["", "a@b", "no-at-sign.org", "two@@example.org", "x@example"])
    def test_rejects_malformed_addresses(self, value):
        with pytest.raises(ValidationError):
            Email(value)

    def test_is_immutable(self):
        email = Email("someone@example.org")

        with pytest.raises(FrozenInstanceError):
            email.value = "other@example.org"

    def test_masking(self):
        assert Email("someone@example.org").mask_for_logging() == "so*****@e*********g"
        assert mask_email("garbage") == "***"


class TestOneTimeToken:
    def test_generate_sets_absolute_expiry(self):
        token = OneTimeToken.generate(NOW, timedelta(hours=24))

        assert token.expires_at == NOW + timedelta(hours=24)
        assert len(token.value) == 36
        assert token.value != OneTimeToken.generate(NOW, timedelta(hours=24)).value

    def test_expiry_boundary(self):
        token = OneTimeToken.generate(NOW, timedelta(minutes=1))

        assert not token.is_expired(NOW + timedelta(minutes=1))
        assert token.is_expired(NOW + timedelta(minutes=1, microseconds=1))

    def test_missing_expiry_counts_as_expired(self):
        assert is_expired(None, NOW)


class TestGoogleIdentity:
    def test_splits_display_name(self):
        identity = GoogleIdentity.from_claims(
            create_fake_google_claims(email="Jean.Claude@Gmail.com", name="Jean Claude Niyonzima")
        )

        assert identity.email == "jean.claude@gmail.com"
        assert identity.first_name == "Jean"
        assert identity.last_name == "Claude Niyonzima"

    def test_given_and_family_names_take_precedence(self):
        claims = create_fake_google_claims(name="Ignored Name", given_name="Aline", family_name="Uwimana")

        identity = GoogleIdentity.from_claims(claims)

        assert (identity.first_name, identity.last_name) == ("Aline", "Uwimana")

    def test_single_word_name(self):
        identity = GoogleIdentity.from_claims(create_fake_google_claims(name="Mononym"))

        assert identity.first_name == "Mononym"
        assert identity.last_name is None


class TestUserProfile:
    def test_blank_values_become_none(self):
        profile = UserProfile(first_name="  ", last_name=" Habimana ", preferred_language="").normalized()

        assert profile == UserProfile(first_name=None, last_name="Habimana", preferred_language=None)


class TestActor:
    def test_from_user(self):
        user = create_fake_user(role=Role.HERITAGE_MANAGER)

        actor = Actor.from_user(user)

        assert actor.username == user.username
        assert actor.role is Role.HERITAGE_MANAGER
        assert not actor.role.can_create_users()

    def test_role_capabilities(self):
        assert Role.SYSTEM_ADMINISTRATOR.can_unlock_accounts()
        assert Role.SYSTEM_ADMINISTRATOR.can_manage_user_status()
        assert Role.CONTENT_MANAGER.is_admin_creatable()
        assert not Role.COMMUNITY_MEMBER.is_admin_creatable()
        assert not Role.GUEST.is_manager()
