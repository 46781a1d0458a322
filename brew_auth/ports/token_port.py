"""
Token Codec Port - Interface for encoding session claim-sets.

Implementations:
- JWTTokenCodec: HS256-signed JWT
"""

from abc import ABC, abstractmethod
from brew_auth.domain.session import SessionClaims


class TokenCodecPort(ABC):
    """Port: Serialize claim-sets into tamper-evident tokens and back."""

    @abstractmethod
    def issue(self, claims: SessionClaims, ttl: int) -> str:
        """
        Encode a claim-set into an opaque token.

        Pure: the expiry is claims.issued_at + ttl, computed once here and
        never extended afterwards.

        Args:
            claims: Claim-set to encode
            ttl: Validity window in seconds

        Returns:
            Opaque token string
        """
        pass

    @abstractmethod
    def verify(self, token: str) -> SessionClaims:
        """
        Decode and check a token.

        Args:
            token: Untrusted token string

        Returns:
            The embedded claim-set

        Raises:
            InvalidTokenError: Malformed, tampered or wrongly signed
            TokenExpiredError: Intact but past its expiry
        """
        pass
