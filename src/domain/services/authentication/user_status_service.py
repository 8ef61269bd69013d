"""Administrative account status transitions.

Status and the lockout state are coupled: every non-active status disables
and locks the account, returning to ACTIVE enables and unlocks it. Moving an
account out of ACTIVE also ends its refresh-token session.

Allowed transitions:

- suspend, disable, soft_delete: from any status except the target one
- reactivate: SUSPENDED or DISABLED back to ACTIVE
- restore: DELETED back to ACTIVE

The system administrator can never be suspended, disabled or deleted.
"""

from typing import Awaitable, Callable, Iterable, Optional, TypeVar

import structlog

from src.core.exceptions import (
    DOMAIN_ERRORS,
    HeritageGuardError,
    PermissionDeniedError,
    UserNotFoundError,
    ValidationError,
)
from src.core.result import Failure, Result, Success
from src.domain.entities.user import User, UserStatus
from src.domain.events import UserStatusChangedEvent
from src.domain.interfaces.infrastructure import IClock, IEventPublisher
from src.domain.interfaces.repositories import IUserRepository
from src.domain.services.auth.lockout import LockoutStateMachine
from src.domain.value_objects.actor import Actor
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

T = TypeVar("T")

REACTIVATABLE_STATUSES = (UserStatus.SUSPENDED, UserStatus.DISABLED)
RESTORABLE_STATUSES = (UserStatus.DELETED,)


class UserStatusService:
    """Suspends, disables, deletes and brings back user accounts.

    Every operation takes the acting administrator explicitly and returns
    ``Success(user)`` or ``Failure(error)``.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        lockout: LockoutStateMachine,
        event_publisher: IEventPublisher,
        clock: IClock,
    ):
        self._users = user_repository
        self._lockout = lockout
        self._events = event_publisher
        self._clock = clock

    async def _guarded(self, operation: str, action: Callable[[], Awaitable[T]]) -> Result[T, HeritageGuardError]:
        try:
            return Success(await action())
        except DOMAIN_ERRORS as e:
            await self._users.rollback()
            logger.info("Status change rejected", operation=operation, code=e.code)
            return Failure(e)
        except Exception:
            await self._users.rollback()
            logger.error("Status change failed", operation=operation, exc_info=True)
            raise

    async def _load(self, actor: Actor, user_id: int, operation: str) -> User:
        if not actor.role.can_manage_user_status():
            logger.warning("Status change denied", operation=operation, actor=actor.username, role=actor.role.value)
            raise PermissionDeniedError()
        user = await self._users.get_by_id(user_id, for_update=True)
        if user is None:
            raise UserNotFoundError()
        return user

    async def _transition(
        self,
        actor: Actor,
        user_id: int,
        target: UserStatus,
        reason: Optional[str],
        allowed_from: Optional[Iterable[UserStatus]],
        operation: str,
    ) -> Result[User, HeritageGuardError]:
        async def action() -> User:
            user = await self._load(actor, user_id, operation)
            old_status = user.status

            if target != UserStatus.ACTIVE and user.role.is_admin():
                raise PermissionDeniedError(
                    get_translated_message("admin_status_protected"), "admin_status_protected"
                )
            if allowed_from is not None and old_status not in allowed_from:
                raise ValidationError(
                    get_translated_message("invalid_status_transition").format(
                        current=old_status.value, target=target.value
                    ),
                    "invalid_status_transition",
                )
            if old_status == target:
                raise ValidationError(
                    get_translated_message("status_unchanged").format(status=target.value), "status_unchanged"
                )

            now = self._clock.now()
            user.apply_status(target, reason, actor.username, now)
            if target != UserStatus.ACTIVE:
                user.refresh_token = None
                user.refresh_token_expires_at = None
                user.unlock_token = None
                user.unlock_token_expires_at = None
            user.touch(actor.username, now)
            await self._users.save(user)
            await self._users.commit()

            logger.info(
                "User status changed",
                user_id=user.id,
                old_status=old_status.value,
                new_status=target.value,
                actor=actor.username,
            )
            await self._events.publish(
                UserStatusChangedEvent(
                    occurred_at=now,
                    user_id=user.id,
                    correlation_id=None,
                    username=user.username,
                    old_status=old_status.value,
                    new_status=target.value,
                    changed_by=actor.username,
                    reason=reason,
                )
            )
            return user

        return await self._guarded(operation, action)

    async def suspend(self, actor: Actor, user_id: int, reason: Optional[str] = None) -> Result[User, HeritageGuardError]:
        return await self._transition(actor, user_id, UserStatus.SUSPENDED, reason, None, "suspend")

    async def disable(self, actor: Actor, user_id: int, reason: Optional[str] = None) -> Result[User, HeritageGuardError]:
        return await self._transition(actor, user_id, UserStatus.DISABLED, reason, None, "disable")

    async def soft_delete(self, actor: Actor, user_id: int, reason: Optional[str] = None) -> Result[User, HeritageGuardError]:
        """Mark the account DELETED. The row stays; the address cannot be re-registered."""
        return await self._transition(actor, user_id, UserStatus.DELETED, reason, None, "soft_delete")

    async def reactivate(self, actor: Actor, user_id: int) -> Result[User, HeritageGuardError]:
        return await self._transition(
            actor,
            user_id,
            UserStatus.ACTIVE,
            get_translated_message("status_reason_reactivated"),
            REACTIVATABLE_STATUSES,
            "reactivate",
        )

    async def restore(self, actor: Actor, user_id: int) -> Result[User, HeritageGuardError]:
        return await self._transition(
            actor,
            user_id,
            UserStatus.ACTIVE,
            get_translated_message("status_reason_restored"),
            RESTORABLE_STATUSES,
            "restore",
        )

    async def set_enabled(self, actor: Actor, user_id: int, enabled: bool) -> Result[User, HeritageGuardError]:
        """Legacy on/off switch.

        Leaves ``status`` alone. Disabling force-locks the account and ends
        its session; enabling unlocks it and resets the attempt counter.
        """

        async def action() -> User:
            user = await self._load(actor, user_id, "set_enabled")
            if not enabled and user.role.is_admin():
                raise PermissionDeniedError(
                    get_translated_message("admin_status_protected"), "admin_status_protected"
                )

            user.enabled = enabled
            if enabled:
                self._lockout.force_unlock(user)
            else:
                self._lockout.force_lock(user)
                user.refresh_token = None
                user.refresh_token_expires_at = None
            user.touch(actor.username, self._clock.now())
            await self._users.save(user)
            await self._users.commit()

            logger.info(
                "User enabled flag changed",
                user_id=user.id,
                enabled=enabled,
                account_locked=self._lockout.is_locked(user),
                actor=actor.username,
            )
            return user

        return await self._guarded("set_enabled", action)
