"""
Role Authorization Gate - Role-based capability decisions.

Maps the closed capability set onto the two principal roles:
- PUBLIC: everyone
- AUTHENTICATED: any resolved principal
- ADMIN_ONLY: admins
- OWNER_OR_ADMIN: admins, or the principal that owns the resource
"""

from typing import Optional

from brew_auth.ports.policy_port import (
    AuthorizationPort,
    AuthorizationDecision,
    Capability,
    CapabilityKind,
    Decision,
)
from brew_auth.domain.session import SessionClaims
from brew_auth.observability import get_logger

logger = get_logger(__name__)


class RoleAuthorizationGate(AuthorizationPort):
    """
    Role-based authorization gate.

    Decisions depend only on the claim-set; the gate never fetches the
    resource. Denials are logged with their internal reason.
    """

    def authorize(
        self,
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> AuthorizationDecision:
        """Evaluate a capability for a principal."""
        result = self._evaluate(principal, capability)

        if not result.allowed:
            logger.info(
                "authorization_denied",
                decision=result.decision.value,
                capability=capability.kind.value,
                user_id=principal.user_id if principal else None,
                reason=result.reason,
            )

        return result

    @staticmethod
    def _evaluate(
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> AuthorizationDecision:
        kind = capability.kind

        if kind == CapabilityKind.PUBLIC:
            return AuthorizationDecision(Decision.ALLOW, "public")

        if kind == CapabilityKind.AUTHENTICATED:
            if principal is None:
                return AuthorizationDecision(Decision.UNAUTHORIZED, "no principal")
            return AuthorizationDecision(Decision.ALLOW, "authenticated")

        if kind == CapabilityKind.ADMIN_ONLY:
            if principal is None:
                return AuthorizationDecision(Decision.UNAUTHORIZED, "no principal")
            if not principal.is_admin:
                return AuthorizationDecision(
                    Decision.FORBIDDEN,
                    f"role {principal.role.value} is not admin",
                )
            return AuthorizationDecision(Decision.ALLOW, "admin")

        if kind == CapabilityKind.OWNER_OR_ADMIN:
            if principal is None:
                return AuthorizationDecision(Decision.FORBIDDEN, "no principal")
            if principal.is_admin:
                return AuthorizationDecision(Decision.ALLOW, "admin")
            if principal.user_id == capability.owner_id:
                return AuthorizationDecision(Decision.ALLOW, "owner")
            return AuthorizationDecision(Decision.FORBIDDEN, "not owner")

        # Deny by default
        return AuthorizationDecision(Decision.FORBIDDEN, f"unknown capability {kind}")
