"""
Brew Auth - Sessions, authorization and password reset

Hexagonal architecture for the coffee shop backend's identity layer.
CRUD handlers consume two calls: resolve the session from the request's
cookies, then authorize it against a capability.

Usage:
    from brew_auth import AuthClient, Capability
    from brew_auth.adapters import RedisCredentialStore

    client = AuthClient.from_settings(RedisCredentialStore())

    # Login
    result = client.login(email, password)

    # Per request
    principal = client.resolve_session(request.cookies)
    client.enforce(principal, Capability.admin_only())
"""

__version__ = "0.1.0"

from brew_auth.sdk.client import AuthClient
from brew_auth.domain.user import User, Role
from brew_auth.domain.session import SessionClaims, CarrierName
from brew_auth.ports.policy_port import Capability, Decision

__all__ = [
    "AuthClient",
    "User",
    "Role",
    "SessionClaims",
    "CarrierName",
    "Capability",
    "Decision",
]
