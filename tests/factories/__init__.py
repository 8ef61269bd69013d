"""Re-export factory functions for generating fake test data."""

# flake8: noqa: F401 – re-export

from .google import create_fake_google_claims
from .user import create_fake_user, hashed

__all__ = [
    "create_fake_user",
    "hashed",
    "create_fake_google_claims",
]
