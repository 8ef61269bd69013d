"""Claims extracted from a verified Google identity token."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class GoogleIdentity:
    """The subset of Google ID-token claims the service stores locally.

    Attributes:
        subject: Google's stable account id (``sub``).
        email: Lower-cased email claim.
        first_name: Given name, or the first word of ``name``.
        last_name: Family name, or the remainder of ``name``.
        picture: Profile picture URL, if any.
    """

    subject: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "GoogleIdentity":
        first_name = claims.get("given_name")
        last_name = claims.get("family_name")
        name = (claims.get("name") or "").strip()
        if name and not (first_name or last_name):
            parts = name.split(" ", 1)
            first_name = parts[0]
            last_name = parts[1] if len(parts) > 1 else None
        return cls(
            subject=str(claims.get("sub", "")),
            email=str(claims["email"]).strip().lower(),
            first_name=first_name,
            last_name=last_name,
            picture=claims.get("picture"),
        )
