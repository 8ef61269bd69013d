"""Value objects describing the outcome of a password strength evaluation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class StrengthLevel(str, Enum):
    WEAK = "Weak"
    MEDIUM = "Medium"
    STRONG = "Strong"
    VERY_STRONG = "Very Strong"


@dataclass(frozen=True, slots=True)
class PasswordStrength:
    """Score, level and improvement hints for a candidate password.

    Attributes:
        level: Bucketed strength derived from ``score``.
        score: Additive score, 0 to 13.
        suggestions: Human-readable hints, one per missing scoring criterion.
    """

    level: StrengthLevel
    score: int
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_weak(self) -> bool:
        return self.level is StrengthLevel.WEAK

    def as_dict(self) -> dict:
        return {
            "strength": self.level.value,
            "score": self.score,
            "feedback": list(self.suggestions),
        }
