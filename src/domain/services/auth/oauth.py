from typing import Optional, Tuple

from structlog import get_logger

from src.domain.entities.user import Role, User
from src.domain.interfaces.infrastructure import IClock
from src.domain.interfaces.oauth import IGoogleIdentityVerifier
from src.domain.interfaces.repositories import IUserRepository
from src.domain.services.auth.role_policy import RoleAssignmentPolicy
from src.domain.value_objects.email import mask_email
from src.domain.value_objects.google_identity import GoogleIdentity
from src.utils.i18n import normalize_language
from src.utils.security import generate_unusable_password, hash_password

logger = get_logger(__name__)

GOOGLE_CREATED_BY = "GOOGLE_AUTH"


class OAuthFederationAdapter:
    """
    Resolves verified Google identities to local users.

    Two entry points exist and they assign roles differently:

    - `resolve` (ID token from the client): new accounts are always
      COMMUNITY_MEMBER.
    - `resolve_authorization_code` (server-side code exchange): new accounts
      get the role their email pattern entitles them to.

    Verification always happens before the store is touched. Account creation
    relies on the store's unique email index, so two concurrent first logins
    for the same address converge on one row.

    Attributes:
        verifier (IGoogleIdentityVerifier): Verifies tokens against Google.
        user_repository (IUserRepository): Credential store.
        role_policy (RoleAssignmentPolicy): Role derivation for the code flow.
        clock (IClock): Source of ``last_login`` and audit timestamps.
    """

    def __init__(
        self,
        verifier: IGoogleIdentityVerifier,
        user_repository: IUserRepository,
        role_policy: RoleAssignmentPolicy,
        clock: IClock,
    ):
        self.verifier = verifier
        self.user_repository = user_repository
        self.role_policy = role_policy
        self.clock = clock

    async def resolve(self, identity_token: str) -> Tuple[User, bool]:
        """
        Verify a Google ID token and return the matching local user.

        Returns:
            Tuple[User, bool]: The user and whether it was created by this call.

        Raises:
            FederationError: If the token cannot be verified.
        """
        identity = await self.verifier.verify_id_token(identity_token)
        return await self._find_or_create(identity, role=Role.COMMUNITY_MEMBER)

    async def resolve_authorization_code(self, code: str) -> Tuple[User, bool]:
        """
        Exchange an authorization code, verify the returned ID token and
        resolve it to a local user.

        Raises:
            FederationError: If the exchange or verification fails.
            AdminAlreadyExistsError, RoleConflictError, ManagerLimitError:
                If a new account's email maps to a role that cannot be granted.
        """
        identity = await self.verifier.exchange_code(code)
        return await self._find_or_create(identity, role=None)

    async def _find_or_create(self, identity: GoogleIdentity, role: Optional[Role]) -> Tuple[User, bool]:
        existing = await self.user_repository.get_by_email(identity.email, for_update=True)
        if existing is not None:
            await self._update_existing(existing, identity)
            return existing, False

        if role is None:
            role = await self.role_policy.determine_role(identity.email)

        now = self.clock.now()
        candidate = User(
            username=identity.email,
            email=identity.email,
            hashed_password=hash_password(generate_unusable_password()),
            role=role,
            email_verified=True,
            first_name=identity.first_name,
            last_name=identity.last_name,
            profile_picture_url=identity.picture,
            preferred_language=normalize_language(None),
            created_by=GOOGLE_CREATED_BY,
            created_at=now,
            last_login=now,
        )
        user, created = await self.user_repository.create_if_absent(candidate)
        if not created:
            # Lost the race against a concurrent first login for the same address.
            await self._update_existing(user, identity)
            return user, False

        logger.info(
            "Created user from Google identity",
            email=mask_email(identity.email),
            role=role.value,
            user_id=user.id,
        )
        return user, True

    async def _update_existing(self, user: User, identity: GoogleIdentity) -> None:
        now = self.clock.now()
        user.last_login = now
        if identity.first_name and identity.first_name != user.first_name:
            user.first_name = identity.first_name
        if identity.last_name and identity.last_name != user.last_name:
            user.last_name = identity.last_name
        if identity.picture and identity.picture != user.profile_picture_url:
            user.profile_picture_url = identity.picture
        user.touch(GOOGLE_CREATED_BY, now)
        await self.user_repository.save(user)
