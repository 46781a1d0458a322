"""
User Domain Model - The principal behind a session.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum

from brew_auth.domain.reset import ResetToken


class Role(Enum):
    """Principal roles."""
    MEMBER = "member"  # Registered customer
    ADMIN = "admin"    # Back-office staff


@dataclass
class User:
    """
    User entity - a registered principal.

    Domain rules:
    - user_id is immutable
    - email is unique and compared exactly as stored (enforced by the store)
    - at most one pending reset token; a new one replaces the old
    - password_hash and reset_token never leave the store through to_dict()
    """
    user_id: str
    email: str
    name: str
    password_hash: str
    role: Role = Role.MEMBER

    phone: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reset_token: Optional[ResetToken] = None
    password_changed_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the public profile (no secrets)."""
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "role": self.role.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_record(self) -> Dict[str, Any]:
        """Serialize every field for storage adapters."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "reset_token": self.reset_token.to_dict() if self.reset_token else None,
            "password_changed_at": (
                self.password_changed_at.isoformat() if self.password_changed_at else None
            ),
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "User":
        """Deserialize from a storage record."""
        return cls(
            user_id=data["user_id"],
            email=data["email"],
            name=data["name"],
            password_hash=data["password_hash"],
            role=Role(data.get("role", "member")),
            phone=data.get("phone"),
            created_at=(
                datetime.fromisoformat(data["created_at"])
                if data.get("created_at")
                else datetime.now(timezone.utc)
            ),
            reset_token=ResetToken.from_dict(data["reset_token"]) if data.get("reset_token") else None,
            password_changed_at=(
                datetime.fromisoformat(data["password_changed_at"])
                if data.get("password_changed_at")
                else None
            ),
        )
