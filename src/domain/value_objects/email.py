"""A Value Object representing an email address in the domain.

Emails are normalised to lower case on construction, so two `Email` objects
built from differently-cased input compare equal. The role assignment policy
and the credential store both rely on that normalisation.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from structlog import get_logger

from src.core.exceptions import ValidationError
from src.utils.i18n import get_translated_message

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating email address.

    Attributes:
        value: The normalised string representation of the email address.

    Raises:
        ValidationError: On construction, if the address is too short, too
            long or not shaped like ``local@domain.tld``.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    MIN_LENGTH: ClassVar[int] = 5
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    )

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError(get_translated_message("invalid_email_format"), "invalid_email_format")

        normalized_value = self.value.strip().lower()
        object.__setattr__(self, "value", normalized_value)

        if not (self.MIN_LENGTH <= len(normalized_value) <= self.MAX_LENGTH):
            raise ValidationError(get_translated_message("invalid_email_length"), "invalid_email_length")
        if not self.EMAIL_PATTERN.match(normalized_value):
            raise ValidationError(get_translated_message("invalid_email_format"), "invalid_email_format")

    @property
    def domain(self) -> str:
        """Returns the domain part of the email address."""
        return self.value.split("@")[1]

    @property
    def local_part(self) -> str:
        """Returns the local part of the email address (before the '@')."""
        return self.value.split("@")[0]

    def mask_for_logging(self) -> str:
        """Returns a masked version of the email for safe logging.

        Example: 'us**@e*****.com'
        """
        return mask_email(self.value)

    def __str__(self) -> str:
        return self.value


def mask_email(value: str) -> str:
    """Mask an arbitrary, possibly malformed, address for log output."""
    if not value or "@" not in value:
        return "***"
    local, domain_part = value.split("@", 1)
    masked_local = f"{local[:2]}{'*' * max(len(local) - 2, 0)}"
    masked_domain = f"{domain_part[:1]}{'*' * max(len(domain_part) - 2, 0)}{domain_part[-1:]}"
    return f"{masked_local}@{masked_domain}"
