"""Interface for the notification emails sent by the authentication flows."""

from abc import ABC, abstractmethod

from src.domain.entities.user import User


class IEmailService(ABC):
    """Sends the transactional emails of the credential lifecycle.

    Implementations raise `EmailServiceError` when delivery fails. Callers
    treat that as fatal for the current operation.
    """

    @abstractmethod
    async def send_verification_email(self, user: User, token: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def send_password_reset_email(self, user: User, token: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def send_unlock_email(self, user: User, token: str) -> None:
        raise NotImplementedError
