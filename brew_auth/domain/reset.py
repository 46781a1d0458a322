"""
Reset Token Domain Model - Single-use, time-boxed password reset secret.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum
import secrets
from urllib.parse import urlencode

SECRET_BYTES = 32  # 256 bits


class ResetStatus(Enum):
    """Reset lifecycle states."""
    NO_PENDING = "no_pending"
    PENDING = "pending"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    SUPERSEDED = "superseded"


@dataclass
class ResetToken:
    """
    Reset token record stored on a principal.

    Domain rules:
    - secret is URL-safe and cryptographically random
    - expires_at is absolute; the record is meaningless once it passes
    - issuing a new record supersedes the previous one
    - a successful redemption clears the record
    """
    secret: str
    expires_at: datetime

    @classmethod
    def generate(cls, ttl: int = 3600, now: Optional[datetime] = None) -> "ResetToken":
        """
        Create a new reset token.

        Args:
            ttl: Validity in seconds (default 1 hour)
            now: Issuance time (defaults to the current UTC time)

        Returns:
            New reset token
        """
        now = now or datetime.now(timezone.utc)
        return cls(
            secret=secrets.token_urlsafe(SECRET_BYTES),
            expires_at=now + timedelta(seconds=ttl),
        )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at

    def matches(self, secret: str, now: Optional[datetime] = None) -> bool:
        """Constant-time secret comparison plus expiry check."""
        if not secret:
            return False
        same = secrets.compare_digest(self.secret.encode(), secret.encode())
        return same and self.is_valid(now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secret": self.secret,
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResetToken":
        return cls(
            secret=data["secret"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


def reset_status(token: Optional[ResetToken], now: Optional[datetime] = None) -> ResetStatus:
    """Status of the record currently stored on a principal."""
    if token is None:
        return ResetStatus.NO_PENDING
    if not token.is_valid(now):
        return ResetStatus.EXPIRED
    return ResetStatus.PENDING


def reset_link(base_url: str, secret: str) -> str:
    """Link placed in the reset message; the secret travels as ?token=."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': secret})}"
