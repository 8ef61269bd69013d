from datetime import datetime  # For timestamp fields
from enum import Enum  # For type-safe role enumeration
from typing import Optional  # For optional fields

from sqlalchemy import Boolean, DateTime, Integer, Text, text  # Explicit column types
from sqlalchemy import Enum as SAEnum  # Portable enum column (VARCHAR + values)
from sqlmodel import Column, Field, Index, SQLModel, String  # For ORM and table definition


class Role(str, Enum):
    """Closed set of roles a user can hold.

    Capability checks live on the enum so call sites ask
    ``actor.role.can_create_users()`` instead of comparing strings.

    Attributes:
        SYSTEM_ADMINISTRATOR: The single platform administrator.
        HERITAGE_MANAGER: Manages heritage sites (``managerN.heritage@``).
        CONTENT_MANAGER: Manages published content (``managerN.content@``).
        COMMUNITY_MEMBER: Self-registered or federated member.
        GUEST: Anonymous visitor; never stored as an account.
    """

    SYSTEM_ADMINISTRATOR = "SYSTEM_ADMINISTRATOR"
    HERITAGE_MANAGER = "HERITAGE_MANAGER"
    CONTENT_MANAGER = "CONTENT_MANAGER"
    COMMUNITY_MEMBER = "COMMUNITY_MEMBER"
    GUEST = "GUEST"

    def is_admin(self) -> bool:
        return self is Role.SYSTEM_ADMINISTRATOR

    def is_manager(self) -> bool:
        return self in (Role.HERITAGE_MANAGER, Role.CONTENT_MANAGER)

    def can_create_users(self) -> bool:
        return self is Role.SYSTEM_ADMINISTRATOR

    def can_unlock_accounts(self) -> bool:
        return self is Role.SYSTEM_ADMINISTRATOR

    def can_manage_user_status(self) -> bool:
        return self is Role.SYSTEM_ADMINISTRATOR

    def is_admin_creatable(self) -> bool:
        """Roles an administrator may assign through account creation."""
        return self.is_manager()


class UserStatus(str, Enum):
    """Administrative status of an account. DELETED is a soft delete."""

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DISABLED = "DISABLED"
    DELETED = "DELETED"


def _enum_column(enum_cls: type[Enum], name: str, default: Enum) -> Column:
    return Column(
        SAEnum(
            enum_cls,
            name=name,
            native_enum=False,
            length=32,
            values_callable=lambda members: [m.value for m in members],
        ),
        default=default,
        nullable=False,
    )


class User(SQLModel, table=True):
    """Represents a User entity and acts as an Aggregate Root.

    Every credential and session concern of an account is stored on this row:
    the password hash, the one-time tokens used for email verification,
    password reset and self-service unlock, the current refresh token and the
    lockout counters. Rows are never physically deleted; ``status`` moves to
    DELETED instead.

    Timestamps are naive UTC. They are written explicitly by the services
    that change the row; nothing is filled in by ORM events.

    Attributes:
        id: The unique identifier for the user (primary key).
        username: Login name. Always the lower-cased email address.
        email: A unique, lower-cased email address.
        hashed_password: Bcrypt hash. Federated users get a hash of a random secret.
        role: The user's role, see :class:`Role`.
        status: Administrative status, see :class:`UserStatus`.
        enabled: Legacy on/off switch. Disabling also locks the account.
        account_non_locked: False while the lockout state machine is LOCKED.
        failed_login_attempts: Consecutive failed password checks.
        refresh_token: The single refresh token currently valid for the user.
        refresh_token_expires_at: Authoritative expiry of ``refresh_token``.
    """

    __tablename__ = "users"  # Explicit table name for clarity

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Login name, equal to the lower-cased email.",
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Unique, lower-cased email address.",
    )
    hashed_password: Optional[str] = Field(default=None, max_length=255)
    role: Role = Field(
        default=Role.COMMUNITY_MEMBER,
        sa_column=_enum_column(Role, "user_role", Role.COMMUNITY_MEMBER),
    )

    # Status
    status: UserStatus = Field(
        default=UserStatus.ACTIVE,
        sa_column=_enum_column(UserStatus, "user_status", UserStatus.ACTIVE),
    )
    status_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status_changed_by: Optional[str] = Field(default=None, max_length=255)
    status_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    enabled: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))

    # Email verification
    email_verified: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, default=False)
    )
    email_verification_token: Optional[str] = Field(default=None, max_length=64, index=True)
    email_verification_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Credential recovery
    reset_token: Optional[str] = Field(default=None, max_length=64, index=True)
    reset_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    unlock_token: Optional[str] = Field(default=None, max_length=64, index=True)
    unlock_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Session
    refresh_token: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    refresh_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Lockout
    failed_login_attempts: int = Field(
        default=0, sa_column=Column(Integer, nullable=False, default=0)
    )
    account_non_locked: bool = Field(
        default=True, sa_column=Column(Boolean, nullable=False, default=True)
    )
    lockout_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Profile
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    preferred_language: str = Field(default="en", max_length=10)
    profile_picture_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    # Audit
    created_by: Optional[str] = Field(default=None, max_length=255)
    created_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=False)
    )
    updated_by: Optional[str] = Field(default=None, max_length=255)
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    last_login: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    __table_args__ = (
        Index("ix_users_email_lower", text("lower(email)")),  # Case-insensitive lookups
        # At most one administrator row can ever exist.
        Index(
            "uq_users_single_system_administrator",
            "role",
            unique=True,
            postgresql_where=text("role = 'SYSTEM_ADMINISTRATOR'"),
            sqlite_where=text("role = 'SYSTEM_ADMINISTRATOR'"),
        ),
        {"extend_existing": True},
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_deleted(self) -> bool:
        return self.status == UserStatus.DELETED

    def apply_status(
        self,
        status: UserStatus,
        reason: Optional[str],
        changed_by: Optional[str],
        changed_at: datetime,
    ) -> None:
        """Record a status transition and couple the enabled/locked flags to it.

        ACTIVE enables and unlocks the account; every other status disables
        and locks it.
        """
        self.status = status
        self.status_reason = reason
        self.status_changed_by = changed_by
        self.status_changed_at = changed_at
        active = status == UserStatus.ACTIVE
        self.enabled = active
        self.account_non_locked = active
        if active:
            self.failed_login_attempts = 0
            self.lockout_time = None

    def touch(self, actor: Optional[str], at: datetime) -> None:
        self.updated_by = actor
        self.updated_at = at
