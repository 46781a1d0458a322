"""
JWT Token Codec - Implements TokenCodecPort with signed JWTs.
"""

import base64
import binascii
import time
from typing import Callable

import jwt

from brew_auth.ports.token_port import TokenCodecPort
from brew_auth.domain.session import SessionClaims
from brew_auth.domain.user import Role
from brew_auth.errors import InvalidTokenError, TokenExpiredError

REQUIRED_CLAIMS = ["sub", "exp", "iat", "iss"]


class JWTTokenCodec(TokenCodecPort):
    """
    JWT-based token codec.

    Uses PyJWT for signing and signature checks. Expiry is checked here
    against an injectable clock so the validity window is exact to the
    millisecond and testable. No blacklist: tokens are stateless.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "brew-auth",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize JWT codec.

        Args:
            secret: Signing secret (server-held)
            algorithm: JWT algorithm (default HS256)
            issuer: Token issuer claim
            clock: Returns the current epoch time in seconds
        """
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._clock = clock

    def issue(self, claims: SessionClaims, ttl: int) -> str:
        """
        Create a signed token for a claim-set.

        Args:
            claims: Claim-set (issued_at in epoch milliseconds)
            ttl: Validity in seconds

        Returns:
            JWT string
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        expires_at_ms = claims.issued_at + ttl * 1000
        payload = {
            "sub": claims.user_id,
            "name": claims.name,
            "email": claims.email,
            "role": claims.role.value,
            "timestamp": claims.issued_at,
            "iat": claims.issued_at // 1000,
            "exp": expires_at_ms / 1000,
            "iss": self._issuer,
        }

        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify a token and return its claim-set.

        Args:
            token: Untrusted token string

        Returns:
            SessionClaims

        Raises:
            InvalidTokenError: Malformed, non-canonical or bad signature
            TokenExpiredError: Signature valid but past expiry
        """
        if not isinstance(token, str) or not self._is_canonical(token):
            raise InvalidTokenError("malformed token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"invalid token: {type(e).__name__}")

        try:
            claims = SessionClaims(
                user_id=str(payload["sub"]),
                name=payload["name"],
                email=payload["email"],
                role=Role(payload["role"]),
                issued_at=int(payload["timestamp"]),
            )
            expires_at = float(payload["exp"])
        except (KeyError, ValueError, TypeError):
            raise InvalidTokenError("incomplete claims")

        if self._clock() >= expires_at:
            raise TokenExpiredError("token expired")

        return claims

    @staticmethod
    def _is_canonical(token: str) -> bool:
        """
        Check the token is three canonical base64url segments.

        The base64 decoder ignores the spare low bits of the last character
        of a segment; re-encoding catches edits to those bits.
        """
        if not token.isascii():
            return False

        segments = token.split(".")
        if len(segments) != 3:
            return False

        for segment in segments:
            if not segment:
                return False
            padded = segment + "=" * (-len(segment) % 4)
            try:
                raw = base64.b64decode(padded, altchars=b"-_", validate=True)
            except (binascii.Error, ValueError):
                return False
            if base64.urlsafe_b64encode(raw).rstrip(b"=").decode() != segment:
                return False

        return True
