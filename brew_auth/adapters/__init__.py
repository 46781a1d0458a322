"""
Adapters - Implementations of ports.

Sessions:
- JWTTokenCodec: Signed JWT session tokens

Credential Storage:
- MemoryCredentialStore: In-memory (testing)
- RedisCredentialStore: Redis with Lua conditional updates
- DynamoDBCredentialStore: AWS DynamoDB with condition expressions

Reset Delivery:
- HttpResetDispatcher: Transactional mail HTTP API
- SmtpResetDispatcher: SMTP
- LoggingResetDispatcher: Log only (development)

Authorization:
- RoleAuthorizationGate: Role-based capability checks
"""

# Sessions
from brew_auth.adapters.jwt_codec import JWTTokenCodec

# Credential Storage
from brew_auth.adapters.memory_store import MemoryCredentialStore
from brew_auth.adapters.redis_store import RedisCredentialStore
from brew_auth.adapters.dynamodb_store import DynamoDBCredentialStore

# Reset Delivery
from brew_auth.adapters.http_dispatcher import HttpResetDispatcher
from brew_auth.adapters.smtp_dispatcher import SmtpResetDispatcher
from brew_auth.adapters.logging_dispatcher import LoggingResetDispatcher

# Authorization
from brew_auth.adapters.role_gate import RoleAuthorizationGate

__all__ = [
    # Sessions
    "JWTTokenCodec",
    # Credential Storage
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "DynamoDBCredentialStore",
    # Reset Delivery
    "HttpResetDispatcher",
    "SmtpResetDispatcher",
    "LoggingResetDispatcher",
    # Authorization
    "RoleAuthorizationGate",
]
