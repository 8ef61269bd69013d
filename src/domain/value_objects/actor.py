"""The authenticated identity on whose behalf an operation runs."""

from dataclasses import dataclass

from src.domain.entities.user import Role, User


@dataclass(frozen=True, slots=True)
class Actor:
    """Explicit caller identity passed to privileged operations.

    Attributes:
        username: Username of the authenticated caller, recorded in audit fields.
        role: The caller's role; capability checks are made against it.
    """

    username: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(username=user.username, role=user.role)
