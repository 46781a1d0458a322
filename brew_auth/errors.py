"""
Auth Errors - Error taxonomy for sessions, authorization and password reset.

Internal kinds (INVALID_TOKEN vs EXPIRED) are for logs only. Callers render
`public_message`, which never says why a credential was rejected.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Error kinds raised by the auth subsystem."""
    INVALID_TOKEN = "invalid_token"                        # Malformed or tampered
    EXPIRED = "expired"                                    # Past validity window
    UNAUTHORIZED = "unauthorized"                          # No usable credential
    FORBIDDEN = "forbidden"                                # Insufficient capability
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"  # Reset secret rejected
    STORE_UNAVAILABLE = "store_unavailable"                # Transient store failure
    INVALID_REQUEST = "invalid_request"                    # Bad input
    CONFLICT = "conflict"                                  # Duplicate principal


class AuthError(Exception):
    """Base class for all auth errors."""

    kind: ErrorKind = ErrorKind.UNAUTHORIZED
    status_code: int = 401
    public_message: str = "Not authenticated"

    def __init__(self, detail: str = "", public_message: Optional[str] = None):
        super().__init__(detail or self.public_message)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class InvalidTokenError(AuthError):
    kind = ErrorKind.INVALID_TOKEN


class TokenExpiredError(AuthError):
    kind = ErrorKind.EXPIRED


class UnauthorizedError(AuthError):
    kind = ErrorKind.UNAUTHORIZED
    public_message = "Access denied"


class ForbiddenError(AuthError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    public_message = "Access denied"


class InvalidOrExpiredTokenError(AuthError):
    kind = ErrorKind.INVALID_OR_EXPIRED_TOKEN
    status_code = 400
    public_message = "Reset link is invalid or has expired"


class StoreUnavailableError(AuthError):
    """Infrastructure failure. Never treat as a denial, never cache."""
    kind = ErrorKind.STORE_UNAVAILABLE
    status_code = 503
    public_message = "Service temporarily unavailable"


class InvalidRequestError(AuthError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400
    public_message = "Invalid request"


class ConflictError(AuthError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    public_message = "Email is already registered"
