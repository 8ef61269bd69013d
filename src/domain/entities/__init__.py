"""Domain entities of the identity service."""

from .user import Role, User, UserStatus

__all__ = ["User", "Role", "UserStatus"]
