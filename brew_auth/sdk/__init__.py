"""
SDK - Session resolution, cookies, password reset and the AuthClient facade.
"""

from brew_auth.sdk.client import AuthClient, LoginResult, ProfileUpdateResult
from brew_auth.sdk.cookies import CookiePolicy, CookieSpec
from brew_auth.sdk.resolver import SessionResolver
from brew_auth.sdk.reset import ResetIssuer, ResetRequestResult

__all__ = [
    "AuthClient",
    "LoginResult",
    "ProfileUpdateResult",
    "CookiePolicy",
    "CookieSpec",
    "SessionResolver",
    "ResetIssuer",
    "ResetRequestResult",
]
