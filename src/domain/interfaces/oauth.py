"""Interface for verifying Google identities."""

from abc import ABC, abstractmethod

from src.domain.value_objects.google_identity import GoogleIdentity


class IGoogleIdentityVerifier(ABC):
    """Turns Google credentials into verified identity claims.

    Both methods raise `FederationError` for anything that is not a valid,
    audience-matching token, including provider timeouts.
    """

    @abstractmethod
    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        raise NotImplementedError

    @abstractmethod
    async def exchange_code(self, code: str) -> GoogleIdentity:
        """Exchange an authorization code for tokens and verify the returned ID token."""
        raise NotImplementedError
