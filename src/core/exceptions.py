"""Centralized, structured exception hierarchy for the identity service.

Each exception carries a machine-readable `code` for programmatic handling and
a human-readable `message` for logs and user feedback. When no message is
given, the `code` doubles as the i18n key and the message is looked up in the
locale catalogue.

Two families exist:

- Domain errors (validation, conflict, authentication, not-found, permission,
  federation). The authentication service converts these into ``Failure``
  results at its boundary.
- Infrastructure errors (`DatabaseError`, `EmailServiceError`). These are
  fatal for the current operation and always propagate to the caller.
"""

from typing import Final, Optional, Sequence

from src.utils.i18n import get_translated_message

__all__: Final = [
    "HeritageGuardError",
    "ValidationError",
    "PasswordPolicyError",
    "InvalidManagerEmailError",
    "ManagerLimitError",
    "InvalidRoleError",
    "ConflictError",
    "DuplicateUserError",
    "DuplicateFullNameError",
    "RoleConflictError",
    "AdminAlreadyExistsError",
    "DeletedUserRecreationError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AccountDisabledError",
    "AccountLockedError",
    "InvalidTokenError",
    "TokenExpiredError",
    "NotFoundError",
    "UserNotFoundError",
    "PermissionDeniedError",
    "FederationError",
    "DatabaseError",
    "EmailServiceError",
]


class HeritageGuardError(Exception):
    """Base exception class for all custom errors in the identity service.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.code = code or type(self).code
        self.message = message if message is not None else get_translated_message(self.code)
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class ValidationError(HeritageGuardError):
    """Raised for input that fails a business rule before anything is persisted."""

    code = "validation_error"


class PasswordPolicyError(ValidationError):
    """Raised when a password does not meet the password policy.

    Every violated rule is kept in `violations` so callers can show the
    complete list instead of one rule at a time.
    """

    code = "password_policy_error"

    def __init__(
        self,
        violations: Sequence[str] = (),
        message: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.violations = list(violations)
        if message is None and self.violations:
            message = " ".join(self.violations)
        super().__init__(message, code)


class InvalidManagerEmailError(ValidationError):
    """Raised when a manager email does not carry a parseable manager number."""

    code = "invalid_manager_email_format"


class ManagerLimitError(ValidationError):
    """Raised when a manager number exceeds the per-type limit."""

    code = "max_managers_reached"


class InvalidRoleError(ValidationError):
    """Raised when a role cannot be assigned through the requested operation."""

    code = "invalid_role"


# ---------------------------------------------------------------------------
# Conflict errors
# ---------------------------------------------------------------------------


class ConflictError(HeritageGuardError):
    """Raised when an operation collides with existing state in the store."""

    code = "conflict"


class DuplicateUserError(ConflictError):
    """Raised when the username or email is already registered."""

    code = "user_already_exists"


class DuplicateFullNameError(ConflictError):
    """Raised when another active user already has the same first and last name."""

    code = "duplicate_full_name"


class RoleConflictError(ConflictError):
    """Raised when a role slot derived from an email address is already taken."""

    code = "role_slot_taken"


class AdminAlreadyExistsError(RoleConflictError):
    """Raised when a second system administrator would be created."""

    code = "admin_already_exists"


class DeletedUserRecreationError(ConflictError):
    """Raised when an email or full name belongs to a soft-deleted account."""

    code = "deleted_user_recreation"


# ---------------------------------------------------------------------------
# Authentication errors
# ---------------------------------------------------------------------------


class AuthenticationError(HeritageGuardError):
    """Raised for general authentication failures."""

    code = "authentication_error"


class InvalidCredentialsError(AuthenticationError):
    """Raised when a username/password pair does not match.

    The message is deliberately the same for unknown users and wrong
    passwords.
    """

    code = "invalid_credentials"


class AccountDisabledError(AuthenticationError):
    code = "account_disabled"


class AccountLockedError(AuthenticationError):
    code = "account_locked"


class InvalidTokenError(AuthenticationError):
    """Raised for a token that is unknown, malformed or already consumed."""

    code = "invalid_token"


class TokenExpiredError(InvalidTokenError):
    code = "token_expired"


# ---------------------------------------------------------------------------
# Lookup / authorization errors
# ---------------------------------------------------------------------------


class NotFoundError(HeritageGuardError):
    code = "not_found"


class UserNotFoundError(NotFoundError):
    code = "user_not_found"


class PermissionDeniedError(HeritageGuardError):
    """Raised when the acting user's role lacks the capability an operation needs."""

    code = "permission_denied"


class FederationError(AuthenticationError):
    """Raised when a third-party identity cannot be verified.

    The message returned to callers is always generic; provider detail is
    logged where the failure happens.
    """

    code = "federation_failed"


# ---------------------------------------------------------------------------
# Infrastructure errors (fatal)
# ---------------------------------------------------------------------------


class DatabaseError(HeritageGuardError):
    """Raised for low-level database interaction errors.

    Wraps driver errors so the domain never imports SQLAlchemy exceptions.
    """

    code = "database_error"


class EmailServiceError(HeritageGuardError):
    """Raised when an email cannot be rendered or delivered."""

    code = "email_service_error"


# Expected outcomes that flows report as ``Failure`` instead of raising.
DOMAIN_ERRORS: Final = (
    ValidationError,
    ConflictError,
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
)
