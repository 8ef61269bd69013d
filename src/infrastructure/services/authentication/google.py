"""Google identity verification.

Verifies Google ID tokens against Google's published signing keys and
exchanges authorization codes at Google's token endpoint. Every provider call
runs under a bounded timeout; transient transport errors on the key fetch are
retried a few times before giving up.

Any failure (bad signature, wrong audience or issuer, expired token, provider
unreachable) surfaces as `FederationError`. The underlying detail is logged,
never returned.
"""

import time
from typing import Any, Dict, Optional

import httpx
from authlib.integrations.base_client.errors import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.jose import JsonWebKey, KeySet, jwt
from authlib.jose.errors import JoseError
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.core.config.settings import settings
from src.core.exceptions import FederationError
from src.domain.interfaces.oauth import IGoogleIdentityVerifier
from src.domain.value_objects.google_identity import GoogleIdentity

logger = get_logger(__name__)

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ["https://accounts.google.com", "accounts.google.com"]
GOOGLE_CALLBACK_PATH = "/auth/google/callback"
JWKS_CACHE_SECONDS = 3600


class GoogleIdentityVerifier(IGoogleIdentityVerifier):
    """Verifies Google credentials with authlib.

    Args:
        client_id: OAuth client id; also the required ``aud`` of ID tokens
        client_secret: OAuth client secret, used for the code exchange
        redirect_uri: Redirect URI registered for the code flow
        timeout: Seconds allowed for each call to Google
        http_client: Optional shared httpx client for the key fetch
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.GOOGLE_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else settings.GOOGLE_CLIENT_SECRET.get_secret_value()
        )
        self.redirect_uri = redirect_uri or f"{settings.FRONTEND_URL}{GOOGLE_CALLBACK_PATH}"
        self.timeout = timeout or settings.GOOGLE_HTTP_TIMEOUT_SECONDS
        self._http_client = http_client
        self._key_set: Optional[KeySet] = None
        self._key_set_fetched_at = 0.0

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        if not id_token or not id_token.strip():
            raise FederationError()
        if not self.client_id:
            logger.error("Google federation attempted without GOOGLE_CLIENT_ID")
            raise FederationError()
        try:
            key_set = await self._signing_keys()
            claims = jwt.decode(
                id_token,
                key_set,
                claims_options={
                    "iss": {"essential": True, "values": GOOGLE_ISSUERS},
                    "aud": {"essential": True, "value": self.client_id},
                    "sub": {"essential": True},
                    "email": {"essential": True},
                    "exp": {"essential": True},
                },
            )
            claims.validate(leeway=60)
        except (JoseError, httpx.HTTPError, ValueError) as e:
            logger.warning("Google ID token rejected", error=str(e), error_type=type(e).__name__)
            raise FederationError() from e

        if claims.get("email_verified") is False:
            logger.warning("Google ID token carries an unverified email")
            raise FederationError()

        identity = GoogleIdentity.from_claims(claims)
        logger.debug("Google ID token verified", subject=identity.subject)
        return identity

    async def exchange_code(self, code: str) -> GoogleIdentity:
        if not code or not code.strip():
            raise FederationError()
        try:
            async with AsyncOAuth2Client(
                client_id=self.client_id,
                client_secret=self.client_secret,
                redirect_uri=self.redirect_uri,
                timeout=self.timeout,
            ) as client:
                token: Dict[str, Any] = await client.fetch_token(
                    GOOGLE_TOKEN_URL, code=code, grant_type="authorization_code"
                )
        except (OAuthError, httpx.HTTPError, ValueError) as e:
            logger.warning("Google code exchange failed", error=str(e), error_type=type(e).__name__)
            raise FederationError() from e

        id_token = token.get("id_token")
        if not id_token:
            logger.warning("Google token response has no id_token")
            raise FederationError()
        return await self.verify_id_token(id_token)

    async def _signing_keys(self) -> KeySet:
        if self._key_set is None or time.monotonic() - self._key_set_fetched_at > JWKS_CACHE_SECONDS:
            self._key_set = JsonWebKey.import_key_set(await self._fetch_jwks())
            self._key_set_fetched_at = time.monotonic()
        return self._key_set

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, max=2),
        reraise=True,
    )
    async def _fetch_jwks(self) -> Dict[str, Any]:
        if self._http_client is not None:
            response = await self._http_client.get(GOOGLE_JWKS_URL, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(GOOGLE_JWKS_URL)
        response.raise_for_status()
        return response.json()
