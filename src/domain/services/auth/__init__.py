from .lockout import LockoutStateMachine
from .oauth import OAuthFederationAdapter
from .password_policy import PasswordPolicyEngine
from .role_policy import RoleAssignmentPolicy
from .token import TokenService

__all__ = [
    "PasswordPolicyEngine",
    "RoleAssignmentPolicy",
    "LockoutStateMachine",
    "TokenService",
    "OAuthFederationAdapter",
]
