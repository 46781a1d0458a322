"""
HTTP surface (FastAPI) for brew-auth.
"""

from brew_auth.api.app import create_app
from brew_auth.api.deps import get_auth_client, get_principal, require

__all__ = ["create_app", "get_auth_client", "get_principal", "require"]
