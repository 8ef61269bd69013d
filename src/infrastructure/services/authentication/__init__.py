"""Infrastructure Authentication Services.

- Google Identity Verifier: ID-token verification and authorization-code
  exchange against Google, implementing `IGoogleIdentityVerifier`
"""

from .google import GoogleIdentityVerifier

__all__ = ["GoogleIdentityVerifier"]
