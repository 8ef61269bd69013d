"""Payloads returned inside ``Success`` by the authentication flows."""

from dataclasses import dataclass
from typing import Optional

from src.domain.entities.user import Role, User
from src.domain.value_objects.password_strength import PasswordStrength

TOKEN_TYPE = "Bearer"


@dataclass(frozen=True)
class RegistrationResult:
    access_token: str
    role: Role
    password_strength: PasswordStrength
    user: User


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: User
    token_type: str = TOKEN_TYPE


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = TOKEN_TYPE


@dataclass(frozen=True)
class FederationResult:
    access_token: str
    user: User
    is_new_account: bool


@dataclass(frozen=True)
class AdminCreationResult:
    access_token: str
    role: Role
    user: User


@dataclass(frozen=True)
class SetupResult:
    access_token: str
    user: User


@dataclass(frozen=True)
class PasswordResetResult:
    """Strength of the new password, reported back to the caller."""

    password_strength: PasswordStrength
    username: Optional[str] = None
