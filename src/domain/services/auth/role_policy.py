"""Email-pattern driven role assignment.

Elevated roles can only be obtained through reserved address shapes:

    admin.admin@<domain>            -> SYSTEM_ADMINISTRATOR (one ever)
    manager<N>.heritage@<domain>    -> HERITAGE_MANAGER (N <= limit, one per address)
    manager<N>.content@<domain>     -> CONTENT_MANAGER (N <= limit, one per address)

Every other address maps to COMMUNITY_MEMBER.
"""

import re
from typing import Optional

import structlog

from src.core.config.settings import settings
from src.core.exceptions import (
    AdminAlreadyExistsError,
    InvalidManagerEmailError,
    InvalidRoleError,
    ManagerLimitError,
    RoleConflictError,
)
from src.domain.entities.user import Role
from src.domain.interfaces.repositories import IUserRepository
from src.domain.value_objects.email import mask_email
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

ADMIN_PATTERN = re.compile(r"^admin\.admin@.*$", re.IGNORECASE)
HERITAGE_MANAGER_PATTERN = re.compile(r"^manager\d+\.heritage@.*$", re.IGNORECASE)
CONTENT_MANAGER_PATTERN = re.compile(r"^manager\d+\.content@.*$", re.IGNORECASE)

_MANAGER_PATTERNS = {
    Role.HERITAGE_MANAGER: HERITAGE_MANAGER_PATTERN,
    Role.CONTENT_MANAGER: CONTENT_MANAGER_PATTERN,
}
_MANAGER_KEYS = {
    Role.HERITAGE_MANAGER: ("max_heritage_managers_reached", "heritage_manager_exists"),
    Role.CONTENT_MANAGER: ("max_content_managers_reached", "content_manager_exists"),
}


def extract_manager_number(email: str) -> int:
    """Parse N out of ``manager<N>.<type>@...``.

    Raises:
        InvalidManagerEmailError: If the local part does not start with the
            literal ``manager`` prefix followed by an integer.
    """
    parts = email.lower().split(".")
    if len(parts) < 2 or not parts[0].startswith("manager"):
        raise InvalidManagerEmailError(
            get_translated_message("invalid_manager_email_format"), "invalid_manager_email_format"
        )
    digits = parts[0][len("manager"):]
    if not digits.isdigit():
        raise InvalidManagerEmailError(
            get_translated_message("invalid_manager_number"), "invalid_manager_number"
        )
    return int(digits)


class RoleAssignmentPolicy:
    """Derives a role from an email address and the roles already stored.

    The admin and manager-slot checks read the store, so callers must still
    rely on the store's unique constraints when two registrations race.
    """

    def __init__(self, user_repository: IUserRepository, max_managers_per_type: Optional[int] = None):
        self._repo = user_repository
        self._max_managers = (
            max_managers_per_type if max_managers_per_type is not None else settings.MAX_MANAGERS_PER_TYPE
        )

    async def determine_role(self, email: str) -> Role:
        """Return the role an address is entitled to.

        Raises:
            AdminAlreadyExistsError: For the admin address once an administrator exists.
            ManagerLimitError: For a manager number above the configured limit.
            RoleConflictError: For a manager address that is already registered.
        """
        email = email.strip().lower()

        if ADMIN_PATTERN.match(email):
            if await self.has_admin():
                logger.warning("admin_creation_rejected_admin_exists", email=mask_email(email))
                raise AdminAlreadyExistsError()
            return Role.SYSTEM_ADMINISTRATOR

        for role, pattern in _MANAGER_PATTERNS.items():
            if pattern.match(email):
                await self._check_manager_slot(email, role)
                return role

        return Role.COMMUNITY_MEMBER

    async def has_admin(self) -> bool:
        return await self._repo.count_by_role(Role.SYSTEM_ADMINISTRATOR) > 0

    async def _check_manager_slot(self, email: str, role: Role) -> None:
        limit_key, exists_key = _MANAGER_KEYS[role]
        number = extract_manager_number(email)
        if number > self._max_managers:
            raise ManagerLimitError(
                get_translated_message(limit_key).format(limit=self._max_managers), "max_managers_reached"
            )
        if await self._repo.exists_by_email_and_role(email, role):
            raise RoleConflictError(get_translated_message(exists_key), "manager_slot_taken")

    async def validate_email_role_consistency(self, email: str, role: Role) -> None:
        """Check that an explicitly requested role matches the address pattern.

        Manager roles additionally go through the same limit and slot checks
        as `determine_role`.

        Raises:
            InvalidRoleError: If the address does not carry the role's pattern,
                or the role is GUEST.
        """
        email = email.strip().lower()

        if role is Role.SYSTEM_ADMINISTRATOR:
            if not ADMIN_PATTERN.match(email):
                raise InvalidRoleError(get_translated_message("admin_email_pattern_required"), "email_role_mismatch")
        elif role.is_manager():
            if not _MANAGER_PATTERNS[role].match(email):
                key = (
                    "heritage_manager_email_pattern_required"
                    if role is Role.HERITAGE_MANAGER
                    else "content_manager_email_pattern_required"
                )
                raise InvalidRoleError(get_translated_message(key), "email_role_mismatch")
            await self._check_manager_slot(email, role)
        elif role is Role.COMMUNITY_MEMBER:
            return
        else:
            raise InvalidRoleError(get_translated_message("invalid_role"))
