"""Domain Value Objects for the authentication domain.

Value objects are immutable objects that describe domain concepts by their
attributes rather than their identity.
"""

from .actor import Actor
from .email import Email, mask_email
from .google_identity import GoogleIdentity
from .one_time_token import OneTimeToken
from .password_strength import PasswordStrength, StrengthLevel
from .profile import UserProfile

__all__ = [
    "Actor",
    "Email",
    "mask_email",
    "GoogleIdentity",
    "OneTimeToken",
    "PasswordStrength",
    "StrengthLevel",
    "UserProfile",
]
