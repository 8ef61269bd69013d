"""Repository interfaces for abstracting data persistence in the domain layer.

The domain layer talks to the credential store only through
`IUserRepository`. Concrete implementations live in
``src.infrastructure.repositories``.

Transactions: repository methods flush but never commit on their own. The
caller ends each operation with exactly one `commit` or `rollback`.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from src.domain.entities.user import Role, User


class IUserRepository(ABC):
    """An interface defining the contract for user persistence operations.

    Lookups by username and email are case-insensitive. Methods that take a
    ``for_update`` flag lock the selected row until the transaction ends, so
    read-modify-write sequences on the same user serialise.
    """

    @abstractmethod
    async def get_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_username(self, username: str, for_update: bool = False) -> Optional[User]:
        """Retrieves a user by their username (case-insensitively).

        Args:
            username: The username to search for.
            for_update: Lock the row for the rest of the transaction.

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        """Retrieves a user by their email address (case-insensitively)."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_verification_token(self, token: str, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_reset_token(self, token: str, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_unlock_token(self, token: str, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def exists_by_email_and_role(self, email: str, role: Role) -> bool:
        """True when a user holds exactly this email together with this role."""
        raise NotImplementedError

    @abstractmethod
    async def count_by_role(self, role: Role) -> int:
        raise NotImplementedError

    @abstractmethod
    async def find_by_full_name(self, first_name: str, last_name: str) -> List[User]:
        """Users whose first and last names match case-insensitively, deleted ones included."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, user: User) -> User:
        """Inserts a new user and flushes it.

        Raises:
            AdminAlreadyExistsError: If the insert would create a second
                system administrator.
            DuplicateUserError: If the username or email is taken.
            DatabaseError: For any other persistence failure.
        """
        raise NotImplementedError

    @abstractmethod
    async def create_if_absent(self, user: User) -> Tuple[User, bool]:
        """Inserts ``user`` unless a user with the same email already exists.

        Concurrent callers racing on the same email all end up with the same
        stored row; exactly one of them observes ``created=True``.

        Returns:
            The stored user and whether this call created it.
        """
        raise NotImplementedError

    @abstractmethod
    async def save(self, user: User) -> User:
        """Flushes changes made to an already persisted user."""
        raise NotImplementedError

    @abstractmethod
    async def rotate_refresh_token(
        self,
        user_id: int,
        expected_token: str,
        new_token: str,
        expires_at: datetime,
    ) -> bool:
        """Atomically swaps the stored refresh token if it still equals ``expected_token``.

        Returns:
            True if this call performed the swap, False if the stored token
            had already changed.
        """
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError
