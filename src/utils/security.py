"""Security utilities for password hashing and random credentials.

All bcrypt work in the project goes through the single `pwd_context` defined
here so the work factor is configured in one place.
"""

import secrets

from passlib.context import CryptContext

from src.core.config.settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_WORK_FACTOR,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Bcrypt-hashed password
    """
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    A missing or malformed hash never verifies.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        return False


def generate_unusable_password() -> str:
    """Random secret for accounts that authenticate through a federated provider."""
    return secrets.token_urlsafe(32)
