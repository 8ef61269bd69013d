"""User Repository implementation using SQLAlchemy.

Implements `IUserRepository` on top of an `AsyncSession`. The repository
flushes but never commits; the calling service decides the transaction
boundary.

Uniqueness is enforced by the database, not by check-then-insert in Python:

- ``users.username`` and ``users.email`` carry unique indexes.
- ``uq_users_single_system_administrator`` is a partial unique index that
  admits at most one SYSTEM_ADMINISTRATOR row.

Inserts run inside a SAVEPOINT so a violated constraint can be translated
into a domain error without poisoning the outer transaction.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import AdminAlreadyExistsError, DatabaseError, DuplicateUserError
from src.domain.entities.user import Role, User
from src.domain.interfaces.repositories import IUserRepository
from src.domain.value_objects.email import mask_email

logger = get_logger(__name__)

SINGLE_ADMIN_INDEX = "uq_users_single_system_administrator"


def _is_single_admin_violation(error: IntegrityError) -> bool:
    detail = str(error.orig)
    # PostgreSQL names the index; SQLite reports the indexed column.
    return SINGLE_ADMIN_INDEX in detail or "users.role" in detail


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of the credential store.

    Args:
        db_session: SQLAlchemy async session for database operations
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    @asynccontextmanager
    async def _db_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(
                "Database operation failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatabaseError() from e

    async def _first(self, statement, operation: str) -> Optional[User]:
        async with self._db_errors(operation):
            result = await self.db_session.execute(statement)
            user = result.scalars().first()
        logger.debug("User lookup completed", operation=operation, found=user is not None)
        return user

    @staticmethod
    def _locked(statement, for_update: bool):
        return statement.with_for_update() if for_update else statement

    async def get_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        statement = self._locked(select(User).where(User.id == user_id), for_update)
        return await self._first(statement, "get_by_id")

    async def get_by_username(self, username: str, for_update: bool = False) -> Optional[User]:
        if not username or not username.strip():
            return None
        value = username.strip().lower()
        statement = self._locked(select(User).where(func.lower(User.username) == value), for_update)
        return await self._first(statement, "get_by_username")

    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        if not email or not email.strip():
            return None
        value = email.strip().lower()
        statement = self._locked(select(User).where(func.lower(User.email) == value), for_update)
        return await self._first(statement, "get_by_email")

    async def get_by_verification_token(self, token: str, for_update: bool = False) -> Optional[User]:
        statement = self._locked(select(User).where(User.email_verification_token == token), for_update)
        return await self._first(statement, "get_by_verification_token")

    async def get_by_reset_token(self, token: str, for_update: bool = False) -> Optional[User]:
        statement = self._locked(select(User).where(User.reset_token == token), for_update)
        return await self._first(statement, "get_by_reset_token")

    async def get_by_unlock_token(self, token: str, for_update: bool = False) -> Optional[User]:
        statement = self._locked(select(User).where(User.unlock_token == token), for_update)
        return await self._first(statement, "get_by_unlock_token")

    async def _exists(self, statement, operation: str) -> bool:
        async with self._db_errors(operation):
            result = await self.db_session.execute(select(statement.exists()))
            return bool(result.scalar())

    async def exists_by_username(self, username: str) -> bool:
        return await self._exists(
            select(User.id).where(func.lower(User.username) == username.strip().lower()),
            "exists_by_username",
        )

    async def exists_by_email(self, email: str) -> bool:
        return await self._exists(
            select(User.id).where(func.lower(User.email) == email.strip().lower()),
            "exists_by_email",
        )

    async def exists_by_email_and_role(self, email: str, role: Role) -> bool:
        return await self._exists(
            select(User.id).where(func.lower(User.email) == email.strip().lower(), User.role == role),
            "exists_by_email_and_role",
        )

    async def count_by_role(self, role: Role) -> int:
        async with self._db_errors("count_by_role"):
            result = await self.db_session.execute(select(func.count(User.id)).where(User.role == role))
            return int(result.scalar_one())

    async def find_by_full_name(self, first_name: str, last_name: str) -> List[User]:
        statement = select(User).where(
            func.lower(User.first_name) == first_name.strip().lower(),
            func.lower(User.last_name) == last_name.strip().lower(),
        )
        async with self._db_errors("find_by_full_name"):
            result = await self.db_session.execute(statement)
            return list(result.scalars().all())

    async def add(self, user: User) -> User:
        try:
            async with self.db_session.begin_nested():
                self.db_session.add(user)
                await self.db_session.flush()
        except IntegrityError as e:
            if _is_single_admin_violation(e):
                logger.warning("Second system administrator rejected by the store")
                raise AdminAlreadyExistsError() from e
            logger.warning("Duplicate user rejected by the store", email=mask_email(user.email))
            raise DuplicateUserError() from e
        except SQLAlchemyError as e:
            logger.error("Error inserting user", error=str(e), error_type=type(e).__name__)
            raise DatabaseError() from e

        logger.debug("User inserted", user_id=user.id, role=user.role.value)
        return user

    async def create_if_absent(self, user: User) -> Tuple[User, bool]:
        try:
            async with self.db_session.begin_nested():
                self.db_session.add(user)
                await self.db_session.flush()
            return user, True
        except IntegrityError as e:
            if _is_single_admin_violation(e):
                raise AdminAlreadyExistsError() from e
            existing = await self.get_by_email(user.email, for_update=True)
            if existing is None:
                logger.error("Insert conflicted but no row matches the email", email=mask_email(user.email))
                raise DuplicateUserError() from e
            logger.info("Concurrent creation resolved to existing user", user_id=existing.id)
            return existing, False
        except SQLAlchemyError as e:
            logger.error("Error inserting user", error=str(e), error_type=type(e).__name__)
            raise DatabaseError() from e

    async def save(self, user: User) -> User:
        async with self._db_errors("save"):
            self.db_session.add(user)
            await self.db_session.flush()
        return user

    async def rotate_refresh_token(
        self,
        user_id: int,
        expected_token: str,
        new_token: str,
        expires_at: datetime,
    ) -> bool:
        statement = (
            update(User)
            .where(User.id == user_id, User.refresh_token == expected_token)
            .values(refresh_token=new_token, refresh_token_expires_at=expires_at)
        )
        async with self._db_errors("rotate_refresh_token"):
            result = await self.db_session.execute(statement)
        swapped = result.rowcount == 1
        logger.debug("Refresh token rotation", user_id=user_id, swapped=swapped)
        return swapped

    async def commit(self) -> None:
        async with self._db_errors("commit"):
            await self.db_session.commit()

    async def rollback(self) -> None:
        async with self._db_errors("rollback"):
            await self.db_session.rollback()
