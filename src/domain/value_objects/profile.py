"""Optional profile data supplied when an account is created."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class UserProfile:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_language: Optional[str] = None

    def normalized(self) -> "UserProfile":
        """Strip surrounding whitespace and turn blank names into None."""
        return UserProfile(
            first_name=(self.first_name or "").strip() or None,
            last_name=(self.last_name or "").strip() or None,
            preferred_language=(self.preferred_language or "").strip() or None,
        )
