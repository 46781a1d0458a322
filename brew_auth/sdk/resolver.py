"""
Session Resolver - Picks the authoritative credential carrier on a request.
"""

from typing import Mapping, Optional, Tuple

from brew_auth.ports.token_port import TokenCodecPort
from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.domain.session import SessionClaims, CarrierName, CARRIER_PRECEDENCE
from brew_auth.errors import InvalidTokenError, TokenExpiredError
from brew_auth.observability import get_logger

logger = get_logger(__name__)


class SessionResolver:
    """
    Resolve a request's carriers into a principal.

    Carriers are consulted admin -> member -> legacy and the first present
    one is authoritative. If it fails verification the request is
    unauthenticated: a bad higher-precedence carrier masks any valid
    lower-precedence one. Read-only, no state between requests.

    With `revoke_on_password_change`, claim-sets issued before the
    principal's last password change are rejected. That costs one store
    read per request, and a store outage raises StoreUnavailableError
    instead of reporting "unauthenticated".
    """

    def __init__(
        self,
        codec: TokenCodecPort,
        store: Optional[CredentialStorePort] = None,
        revoke_on_password_change: bool = False,
    ):
        if revoke_on_password_change and store is None:
            raise ValueError("revoke_on_password_change requires a credential store")
        self._codec = codec
        self._store = store
        self._revoke_on_password_change = revoke_on_password_change

    @staticmethod
    def authoritative_carrier(carriers: Mapping[str, str]) -> Optional[CarrierName]:
        """First present (non-empty) carrier in precedence order."""
        for carrier in CARRIER_PRECEDENCE:
            if carriers.get(carrier.value):
                return carrier
        return None

    def resolve(self, carriers: Mapping[str, str]) -> Optional[SessionClaims]:
        """
        Resolve carriers to a claim-set.

        Args:
            carriers: Cookie name -> value for the request

        Returns:
            SessionClaims, or None when unauthenticated
        """
        found = self.resolve_carrier(carriers)
        return found[1] if found else None

    def resolve_carrier(
        self,
        carriers: Mapping[str, str],
    ) -> Optional[Tuple[CarrierName, SessionClaims]]:
        """Like resolve(), but also report which carrier was authoritative."""
        carrier = self.authoritative_carrier(carriers)
        if carrier is None:
            return None

        try:
            claims = self._codec.verify(carriers[carrier.value])
        except (InvalidTokenError, TokenExpiredError) as e:
            logger.info("session_rejected", carrier=carrier.value, kind=e.kind.value)
            return None

        if self._revoke_on_password_change and self._is_revoked(claims):
            logger.info("session_rejected", carrier=carrier.value, kind="revoked")
            return None

        return carrier, claims

    def _is_revoked(self, claims: SessionClaims) -> bool:
        user = self._store.find_by_id(claims.user_id)
        if user is None:
            return True
        if user.password_changed_at is None:
            return False
        return claims.issued_at < int(user.password_changed_at.timestamp() * 1000)
