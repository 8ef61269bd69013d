"""Factory for generating fake user data for testing."""

from datetime import datetime
from functools import lru_cache
from typing import Optional

from faker import Faker

from src.domain.entities.user import Role, User, UserStatus
from src.utils.security import hash_password

fake = Faker()

DEFAULT_PASSWORD = "Heritage#Vault42"


@lru_cache(maxsize=None)
def hashed(password: str = DEFAULT_PASSWORD) -> str:
    """Bcrypt hash of ``password``, cached so suites do not re-hash per test."""
    return hash_password(password)


def create_fake_user(
    id: Optional[int] = None,
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
    role: Role = Role.COMMUNITY_MEMBER,
    status: UserStatus = UserStatus.ACTIVE,
    enabled: bool = True,
    email_verified: bool = True,
    account_non_locked: bool = True,
    failed_login_attempts: int = 0,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    created_at: Optional[datetime] = None,
    **overrides,
) -> User:
    """Create a fake User entity for testing.

    Args:
        id (Optional[int]): User ID, defaults to a random integer.
        email (Optional[str]): Email, defaults to a fake email. Also used as the username.
        password (str): Plain password the stored hash is derived from.
        role (Role): User role, defaults to COMMUNITY_MEMBER.
        status (UserStatus): Administrative status, defaults to ACTIVE.
        created_at (Optional[datetime]): Creation timestamp, defaults to a fixed date.
        **overrides: Any other User field.

    Returns:
        User: A fake User entity.
    """
    email = (email if email is not None else fake.unique.email()).lower()
    return User(
        id=id if id is not None else fake.random_int(min=1, max=10000),
        username=email,
        email=email,
        hashed_password=hashed(password),
        role=role,
        status=status,
        enabled=enabled,
        email_verified=email_verified,
        account_non_locked=account_non_locked,
        failed_login_attempts=failed_login_attempts,
        first_name=first_name if first_name is not None else fake.first_name(),
        last_name=last_name if last_name is not None else fake.last_name(),
        created_at=created_at if created_at is not None else datetime(2026, 1, 15, 8, 30),
        **overrides,
    )
