"""
Password hashing with bcrypt.

bcrypt salts automatically and produces "$2b$" hashes; "$2a$" hashes written
by the previous Node.js backend verify unchanged. Passwords are truncated to
72 bytes (bcrypt's limit).
"""

from functools import lru_cache

import bcrypt

from brew_auth.errors import InvalidRequestError

DEFAULT_ROUNDS = 10


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds=rounds)


def burn_verify(password: str, rounds: int = DEFAULT_ROUNDS) -> bool:
    """
    Run a verification against a throwaway hash and return False.

    Used when no account matched, so unknown and known emails cost the same.
    """
    verify_password(password, _dummy_hash(rounds))
    return False


def check_new_password(password: str, min_length: int) -> None:
    """Reject passwords that are missing or too short."""
    if not isinstance(password, str) or len(password) < min_length:
        raise InvalidRequestError(
            "password too short",
            public_message=f"Password must be at least {min_length} characters",
        )
