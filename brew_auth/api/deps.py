"""
FastAPI dependencies: the shared AuthClient, the request principal and
capability guards.

    @router.get("/orders")
    def list_orders(principal: SessionClaims = Depends(require(Capability.admin_only()))):
        ...
"""

from typing import Callable, Optional

from fastapi import Depends, Request

from brew_auth.domain.session import SessionClaims
from brew_auth.ports.policy_port import Capability
from brew_auth.sdk.client import AuthClient


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


def get_principal(
    request: Request,
    client: AuthClient = Depends(get_auth_client),
) -> Optional[SessionClaims]:
    """Resolve the request's carrier cookies; None when unauthenticated."""
    return client.resolve_session(request.cookies)


def require(capability: Capability) -> Callable[..., Optional[SessionClaims]]:
    """
    Build a dependency that enforces `capability` for the request principal.

    Raises UnauthorizedError / ForbiddenError, rendered by the app's
    AuthError handler.
    """

    def dependency(
        principal: Optional[SessionClaims] = Depends(get_principal),
        client: AuthClient = Depends(get_auth_client),
    ) -> Optional[SessionClaims]:
        return client.enforce(principal, capability)

    return dependency
