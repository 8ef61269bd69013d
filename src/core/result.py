"""Result types for operations whose failures are part of the domain.

Authentication flows return ``Success`` or ``Failure`` instead of raising for
expected outcomes such as a wrong password or a consumed token. Infrastructure
faults (database, email transport) are still raised.

Usage:
    result = await auth_service.login("someone@example.com", "S3cure!Pwd", False)
    match result:
        case Success(value):
            tokens = value
        case Failure(error):
            log.info("login_rejected", code=error.code)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Represents a successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    """Represents a failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure[E]]
