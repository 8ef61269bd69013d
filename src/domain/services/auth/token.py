"""Access and refresh token issuing.

Both kinds are JWTs signed with the configured secret (HS256 by default) and
stamped with the platform issuer and audience. A refresh token is only valid
while it is the one stored on the user row.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jwt import PyJWTError
from jwt import decode as jwt_decode
from jwt import encode as jwt_encode
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import InvalidTokenError, TokenExpiredError
from src.domain.entities.user import User
from src.domain.interfaces.infrastructure import IClock
from src.utils.i18n import get_translated_message

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class IssuedToken:
    value: str
    expires_at: datetime


class TokenService:
    """Issues and inspects signed JWTs for a user identity.

    Access tokens are self-contained: their ``exp`` claim decides validity.
    Refresh tokens are signed as well but treated as opaque by the rest of the
    service; whether a refresh token is usable is decided by the value and
    expiry stored on the user row, never by the token's own claims.

    All timestamps come from the injected clock so expiry can be tested
    without sleeping.

    Attributes:
        clock (IClock): Source of the current time (naive UTC).
    """

    def __init__(
        self,
        clock: IClock,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self.clock = clock
        self._secret_key = secret_key or settings.JWT_SECRET_KEY.get_secret_value()
        self._algorithm = algorithm or settings.JWT_ALGORITHM
        self._issuer = issuer or settings.JWT_ISSUER
        self._audience = audience or settings.JWT_AUDIENCE

    def access_token_lifetime(self, remember_me: bool = False) -> timedelta:
        if remember_me:
            return timedelta(days=settings.REMEMBER_ME_TOKEN_EXPIRE_DAYS)
        return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue_access_token(self, user: User, remember_me: bool = False) -> str:
        """Create a signed access token.

        Args:
            user (User): Subject of the token.
            remember_me (bool): Use the long remember-me lifetime.

        Returns:
            str: Encoded JWT carrying ``sub`` (username) and ``role``.
        """
        now = self.clock.now()
        expires_at = now + self.access_token_lifetime(remember_me)
        token = self._encode(user, ACCESS_TOKEN_TYPE, now, expires_at, {"role": user.role.value})
        logger.debug("Access token created", user_id=user.id, remember_me=remember_me)
        return token

    def issue_refresh_token(self, user: User) -> IssuedToken:
        """Create a refresh token together with the expiry to store next to it."""
        now = self.clock.now()
        expires_at = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        token = self._encode(user, REFRESH_TOKEN_TYPE, now, expires_at)
        logger.debug("Refresh token created", user_id=user.id)
        return IssuedToken(value=token, expires_at=expires_at)

    def _encode(
        self,
        user: User,
        token_type: str,
        issued_at: datetime,
        expires_at: datetime,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "sub": user.username,
            "uid": user.id,
            "type": token_type,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": issued_at,
            "exp": expires_at,
            "jti": uuid.uuid4().hex,
        }
        if extra:
            payload.update(extra)
        return jwt_encode(payload, self._secret_key, algorithm=self._algorithm)

    def _decode(self, token: str) -> Dict[str, Any]:
        """Verify signature, issuer and audience. Expiry is checked by the callers."""
        try:
            return jwt_decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "type"]},
            )
        except PyJWTError as e:
            logger.warning("Token decode failed", error=str(e))
            raise InvalidTokenError(get_translated_message("invalid_token")) from e

    def extract_identity(self, token: str) -> str:
        """Return the username a token was issued for.

        Raises:
            InvalidTokenError: If the token is malformed or not signed by this service.
        """
        return str(self._decode(token)["sub"])

    def expiry_of(self, token: str) -> datetime:
        """The ``exp`` claim as a naive UTC datetime."""
        exp = self._decode(token)["exp"]
        return datetime.fromtimestamp(int(exp), tz=timezone.utc).replace(tzinfo=None)

    def validate_access_token(self, token: str) -> Dict[str, Any]:
        """Decode an access token and check its expiry against the clock.

        Raises:
            InvalidTokenError: If the token is invalid or is not an access token.
            TokenExpiredError: If the token has expired.
        """
        claims = self._decode(token)
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError(get_translated_message("invalid_token"))
        if self.expiry_of(token) <= self.clock.now():
            raise TokenExpiredError(get_translated_message("token_expired"))
        return claims
