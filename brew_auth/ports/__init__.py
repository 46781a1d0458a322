"""
Ports - Interfaces for tokens, credential storage, reset delivery and authorization.

Hexagonal architecture: These define WHAT we need, not HOW.
Adapters provide the HOW.
"""

from brew_auth.ports.token_port import TokenCodecPort
from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.ports.policy_port import (
    AuthorizationPort,
    AuthorizationDecision,
    Capability,
    CapabilityKind,
    Decision,
)

__all__ = [
    # Sessions
    "TokenCodecPort",
    # Credentials
    "CredentialStorePort",
    "ResetDispatcherPort",
    "DispatchResult",
    # Authorization
    "AuthorizationPort",
    "AuthorizationDecision",
    "Capability",
    "CapabilityKind",
    "Decision",
]
