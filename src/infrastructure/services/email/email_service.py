"""Email service implementation for the credential lifecycle.

Renders the verification, password-reset and unlock emails from Jinja2
templates and delivers them through FastMail. Links point at the front-end,
built from ``settings.FRONTEND_URL``:

- ``/verify-email?token=...``
- ``/reset-password?token=...``
- ``/unlock-account?token=...``

In test mode the rendered message is logged instead of sent.

Security Features:
- HTML escaping by default in templates
- Recipient addresses are masked in logs
- Token values never reach the logs
"""

from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from src.core.config.settings import settings
from src.core.exceptions import EmailServiceError
from src.domain.entities.user import User
from src.domain.interfaces.email import IEmailService
from src.domain.value_objects.email import mask_email
from src.utils.i18n import get_translated_message, normalize_language

logger = structlog.get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[4]

VERIFY_EMAIL_PATH = "/verify-email"
RESET_PASSWORD_PATH = "/reset-password"
UNLOCK_ACCOUNT_PATH = "/unlock-account"


def _templates_dir() -> Path:
    path = Path(settings.EMAIL_TEMPLATES_DIR)
    return path if path.is_absolute() else PROJECT_ROOT / path


class EmailService(IEmailService):
    """Sends the transactional emails of the credential lifecycle.

    Attributes:
        jinja_env: Jinja2 environment for template rendering
        fastmail: FastMail client, ``None`` in test mode
    """

    def __init__(self, test_mode: Optional[bool] = None, fastmail: Optional[FastMail] = None):
        self._test_mode = settings.EMAIL_TEST_MODE if test_mode is None else test_mode
        try:
            settings.validate_smtp_config()
        except ValueError as e:
            logger.warning("Email configuration validation warning", error=str(e))

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(_templates_dir())),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.fastmail = fastmail if fastmail is not None or self._test_mode else self._build_fastmail()
        logger.info("EmailService initialized", test_mode=self._test_mode, templates_dir=str(_templates_dir()))

    @staticmethod
    def _build_fastmail() -> FastMail:
        try:
            config = ConnectionConfig(
                MAIL_USERNAME=settings.SMTP_USERNAME or "",
                MAIL_PASSWORD=settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else "",
                MAIL_FROM=settings.FROM_EMAIL,
                MAIL_FROM_NAME=settings.FROM_NAME,
                MAIL_PORT=settings.SMTP_PORT,
                MAIL_SERVER=settings.SMTP_HOST,
                MAIL_STARTTLS=settings.SMTP_USE_TLS,
                MAIL_SSL_TLS=settings.SMTP_USE_SSL,
                USE_CREDENTIALS=bool(settings.SMTP_USERNAME and settings.SMTP_PASSWORD),
                VALIDATE_CERTS=True,
            )
            return FastMail(config)
        except Exception as e:
            logger.error("Failed to configure FastMail", error=str(e))
            raise EmailServiceError(get_translated_message("email_service_not_configured")) from e

    @staticmethod
    def build_link(path: str, token: str) -> str:
        return f"{settings.FRONTEND_URL}{path}?{urlencode({'token': token})}"

    async def send_verification_email(self, user: User, token: str) -> None:
        await self._send(
            user,
            subject_key="email_verification_subject",
            template_name="verify_email.html",
            context={
                "action_url": self.build_link(VERIFY_EMAIL_PATH, token),
                "expires_hours": settings.EMAIL_VERIFICATION_TOKEN_EXPIRE_HOURS,
            },
        )

    async def send_password_reset_email(self, user: User, token: str) -> None:
        await self._send(
            user,
            subject_key="password_reset_subject",
            template_name="password_reset.html",
            context={
                "action_url": self.build_link(RESET_PASSWORD_PATH, token),
                "expires_hours": settings.PASSWORD_RESET_TOKEN_EXPIRE_HOURS,
            },
        )

    async def send_unlock_email(self, user: User, token: str) -> None:
        await self._send(
            user,
            subject_key="unlock_account_subject",
            template_name="unlock_account.html",
            context={
                "action_url": self.build_link(UNLOCK_ACCOUNT_PATH, token),
                "expires_hours": settings.UNLOCK_TOKEN_EXPIRE_HOURS,
            },
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render one email template.

        Raises:
            EmailServiceError: If the template is missing or fails to render.
        """
        try:
            return self.jinja_env.get_template(template_name).render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed", template=template_name, error=str(e))
            raise EmailServiceError(get_translated_message("email_template_error")) from e

    async def _send(self, user: User, subject_key: str, template_name: str, context: Dict[str, Any]) -> None:
        language = normalize_language(user.preferred_language)
        subject = get_translated_message(subject_key, language)
        html_content = self.render(
            template_name,
            {
                **context,
                "user_name": user.first_name or user.username,
                "app_name": settings.PROJECT_NAME,
                "subject": subject,
            },
        )

        if self._test_mode:
            logger.info(
                "Email sent in test mode",
                to_email=mask_email(user.email),
                subject=subject,
                template=template_name,
                html_length=len(html_content),
            )
            return

        message = MessageSchema(
            subject=subject,
            recipients=[user.email],
            body=html_content,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message)
        except Exception as e:
            logger.error(
                "Failed to send email",
                to_email=mask_email(user.email),
                template=template_name,
                error=str(e),
            )
            raise EmailServiceError() from e

        logger.info("Email sent", to_email=mask_email(user.email), template=template_name, user_id=user.id)
