"""Password policy: strength scoring and rule validation.

The engine is pure. It never hashes, stores or logs the candidate password.
"""

import re
import string
from typing import List, Optional

from src.core.config.settings import settings
from src.core.exceptions import PasswordPolicyError
from src.domain.value_objects.password_strength import PasswordStrength, StrengthLevel
from src.utils.i18n import get_translated_message

SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")
_COMMON_PASSWORDS = re.compile(
    r"^(password|123456|qwerty|admin|welcome|letmein|monkey|dragon|baseball|football)$",
    re.IGNORECASE,
)

REPEAT_WINDOW = 4


def has_sequential_chars(password: str) -> bool:
    """True if three consecutive digits or letters ascend or descend by one."""
    for i in range(len(password) - 2):
        a, b, c = password[i], password[i + 1], password[i + 2]
        if a in string.digits and b in string.digits and c in string.digits:
            n1, n2, n3 = int(a), int(b), int(c)
        elif a.isalpha() and b.isalpha() and c.isalpha():
            n1, n2, n3 = ord(a.lower()), ord(b.lower()), ord(c.lower())
        else:
            continue
        if (n2 == n1 + 1 and n3 == n2 + 1) or (n2 == n1 - 1 and n3 == n2 - 1):
            return True
    return False


def has_repeated_chars(password: str) -> bool:
    """True if the same character appears four times in a row."""
    for i in range(len(password) - REPEAT_WINDOW + 1):
        if len(set(password[i : i + REPEAT_WINDOW])) == 1:
            return True
    return False


def is_common_password(password: str) -> bool:
    """True only when the whole password is a deny-listed word."""
    return bool(_COMMON_PASSWORDS.match(password))


class PasswordPolicyEngine:
    """Scores and validates candidate passwords.

    Every rule is evaluated on its own, so `validate` reports all violations
    at once instead of stopping at the first one.

    Attributes:
        min_length: Shortest accepted password.
        max_length: Longest accepted password.
    """

    def __init__(self, min_length: Optional[int] = None, max_length: Optional[int] = None):
        self.min_length = min_length if min_length is not None else settings.PASSWORD_MIN_LENGTH
        self.max_length = max_length if max_length is not None else settings.PASSWORD_MAX_LENGTH

    def score(self, password: str) -> PasswordStrength:
        """Compute an additive strength score with improvement suggestions.

        Args:
            password: Candidate password.

        Returns:
            PasswordStrength: level, raw score and one suggestion per missed criterion.
        """
        password = password or ""
        score = 0
        suggestions: List[str] = []

        if len(password) >= 8:
            score += 1
            if len(password) >= 12:
                score += 1
                if len(password) >= 16:
                    score += 1
        else:
            suggestions.append(get_translated_message("strength_add_length"))

        if _UPPERCASE.search(password):
            score += 1
        else:
            suggestions.append(get_translated_message("strength_add_uppercase"))

        if _LOWERCASE.search(password):
            score += 1
        else:
            suggestions.append(get_translated_message("strength_add_lowercase"))

        if _DIGIT.search(password):
            score += 1
        else:
            suggestions.append(get_translated_message("strength_add_digit"))

        if _SPECIAL.search(password):
            score += 2
        else:
            suggestions.append(get_translated_message("strength_add_special"))

        if not has_sequential_chars(password):
            score += 1
        else:
            suggestions.append(get_translated_message("strength_avoid_sequential"))

        if not has_repeated_chars(password):
            score += 1
        else:
            suggestions.append(get_translated_message("strength_avoid_repeated"))

        if not is_common_password(password):
            score += 2
        else:
            suggestions.append(get_translated_message("strength_avoid_common"))

        if score >= 8:
            level = StrengthLevel.VERY_STRONG
        elif score >= 6:
            level = StrengthLevel.STRONG
        elif score >= 4:
            level = StrengthLevel.MEDIUM
        else:
            level = StrengthLevel.WEAK

        return PasswordStrength(level=level, score=score, suggestions=tuple(suggestions))

    def validate(self, password: str) -> List[str]:
        """Return every rule the password violates; empty means acceptable."""
        if not password:
            return [get_translated_message("password_empty")]

        violations: List[str] = []

        if len(password) < self.min_length:
            violations.append(get_translated_message("password_too_short").format(length=self.min_length))
        if len(password) > self.max_length:
            violations.append(get_translated_message("password_too_long").format(length=self.max_length))

        strength = self.score(password)
        if strength.is_weak:
            violations.append(
                get_translated_message("password_too_weak").format(feedback=" ".join(strength.suggestions))
            )

        if not _UPPERCASE.search(password):
            violations.append(get_translated_message("password_no_uppercase"))
        if not _LOWERCASE.search(password):
            violations.append(get_translated_message("password_no_lowercase"))
        if not _DIGIT.search(password):
            violations.append(get_translated_message("password_no_digit"))
        if not _SPECIAL.search(password):
            violations.append(
                get_translated_message("password_no_special_char").format(characters=SPECIAL_CHARACTERS)
            )
        if is_common_password(password):
            violations.append(get_translated_message("password_too_common"))
        if has_sequential_chars(password):
            violations.append(get_translated_message("password_sequential_chars"))
        if has_repeated_chars(password):
            violations.append(get_translated_message("password_repeated_chars"))

        return violations

    def enforce(self, password: str) -> PasswordStrength:
        """Validate and return the strength, or raise with every violation.

        Raises:
            PasswordPolicyError: If at least one rule is violated.
        """
        violations = self.validate(password)
        if violations:
            raise PasswordPolicyError(violations)
        return self.score(password)
