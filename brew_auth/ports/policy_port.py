"""
Authorization Port - Capability checks for protected operations.

Collaborators (catalog, news, scheduling, upload handlers) call a single
`authorize(principal, capability)` entry point instead of inspecting roles
themselves.
"""

from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from brew_auth.domain.session import SessionClaims
from brew_auth.errors import UnauthorizedError, ForbiddenError


class Decision(Enum):
    """Authorization outcome."""
    ALLOW = "allow"
    UNAUTHORIZED = "unauthorized"  # No principal
    FORBIDDEN = "forbidden"        # Principal lacks the capability


class CapabilityKind(Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN_ONLY = "admin_only"
    OWNER_OR_ADMIN = "owner_or_admin"


@dataclass(frozen=True)
class Capability:
    """
    Required capability for an operation.

    Closed set, build through the constructors:
    - Capability.public()
    - Capability.authenticated()
    - Capability.admin_only()
    - Capability.owner_or_admin(owner_id)
    """
    kind: CapabilityKind
    owner_id: Optional[str] = None

    @classmethod
    def public(cls) -> "Capability":
        return cls(CapabilityKind.PUBLIC)

    @classmethod
    def authenticated(cls) -> "Capability":
        return cls(CapabilityKind.AUTHENTICATED)

    @classmethod
    def admin_only(cls) -> "Capability":
        return cls(CapabilityKind.ADMIN_ONLY)

    @classmethod
    def owner_or_admin(cls, owner_id: str) -> "Capability":
        # Callers look the resource up first; a missing resource is a 404
        # before the gate is ever asked.
        if owner_id is None or str(owner_id) == "":
            raise ValueError("owner_or_admin requires an owner id")
        return cls(CapabilityKind.OWNER_OR_ADMIN, owner_id=str(owner_id))


@dataclass(frozen=True)
class AuthorizationDecision:
    """
    Gate result.

    `reason` is for server-side logs only and must not be sent to clients.
    """
    decision: Decision
    reason: str

    @property
    def allowed(self) -> bool:
        return self.decision == Decision.ALLOW


class AuthorizationPort(ABC):
    """Port: Decide whether a principal holds a capability."""

    @abstractmethod
    def authorize(
        self,
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> AuthorizationDecision:
        """
        Evaluate a capability. No side effects.

        Args:
            principal: Resolved claim-set, or None when unauthenticated
            capability: Required capability

        Returns:
            AuthorizationDecision
        """
        pass

    def enforce(
        self,
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> Optional[SessionClaims]:
        """
        Evaluate a capability and raise on denial.

        Returns:
            The principal (None only for Public capabilities)

        Raises:
            UnauthorizedError: No principal
            ForbiddenError: Principal lacks the capability
        """
        result = self.authorize(principal, capability)
        if result.decision == Decision.UNAUTHORIZED:
            raise UnauthorizedError(result.reason)
        if result.decision == Decision.FORBIDDEN:
            raise ForbiddenError(result.reason)
        return principal
