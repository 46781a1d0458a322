"""
Domain Models - Pure business entities.

No infrastructure dependencies. Domain logic only.
"""

from brew_auth.domain.reset import ResetToken, ResetStatus, reset_status
from brew_auth.domain.user import User, Role
from brew_auth.domain.session import (
    SessionClaims,
    CarrierName,
    CARRIER_PRECEDENCE,
)

__all__ = [
    "User",
    "Role",
    "SessionClaims",
    "CarrierName",
    "CARRIER_PRECEDENCE",
    "ResetToken",
    "ResetStatus",
    "reset_status",
]
