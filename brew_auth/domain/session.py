"""
Session Domain Model - Stateless claim-set and the carriers that hold it.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from enum import Enum
import time

from brew_auth.domain.user import User, Role


class CarrierName(Enum):
    """Cookie names that may carry a session token."""
    ADMIN = "admin_token"    # Role-scoped admin carrier
    MEMBER = "member_token"  # Role-scoped member carrier
    LEGACY = "auth_token"    # Predates role separation

    @classmethod
    def for_role(cls, role: Role) -> "CarrierName":
        return cls.ADMIN if role == Role.ADMIN else cls.MEMBER


# Consulted in this order; the first present carrier is authoritative.
CARRIER_PRECEDENCE = (CarrierName.ADMIN, CarrierName.MEMBER, CarrierName.LEGACY)


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SessionClaims:
    """
    Claim-set embedded in a session token.

    Domain rules:
    - issued_at is epoch milliseconds, fixed at login
    - never persisted server-side; a token stays valid until it expires
    """
    user_id: str
    name: str
    email: str
    role: Role
    issued_at: int

    @classmethod
    def for_user(cls, user: User, issued_at: Optional[int] = None) -> "SessionClaims":
        """Build a fresh claim-set for a logged-in user."""
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            issued_at=now_millis() if issued_at is None else issued_at,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "issued_at": self.issued_at,
        }
