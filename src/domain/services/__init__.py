"""Domain Services for the credential and session lifecycle.

Policy Services (``auth``):
- Password Policy: scoring and validation of candidate passwords
- Role Assignment: email-pattern driven role derivation
- Lockout: failed-login state machine
- Token: JWT issuance and inspection
- OAuth Federation: Google identity to local user resolution

Orchestration Services (``authentication``):
- Authentication: register, login, refresh, recovery, unlock and setup flows
- User Status: suspend, disable, delete and restore accounts
"""
