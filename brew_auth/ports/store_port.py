"""
Credential Store Port - Interface for the durable principal record.

Implementations:
- MemoryCredentialStore: In-process dict (testing only)
- RedisCredentialStore: Redis hashes + Lua for conditional updates
- DynamoDBCredentialStore: DynamoDB with condition expressions

Every method is a single-row atomic operation. Infrastructure failures are
raised as StoreUnavailableError, never reported as "not found".
"""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import datetime
from brew_auth.domain.user import User
from brew_auth.domain.reset import ResetToken


class CredentialStorePort(ABC):
    """Port: Read and update principal credentials."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """
        Find a user by exact email.

        Returns:
            User if found, None otherwise
        """
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]:
        """
        Find a user by ID.

        Returns:
            User if found, None otherwise
        """
        pass

    @abstractmethod
    def create(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            ConflictError: Email already registered
        """
        pass

    @abstractmethod
    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[User]:
        """
        Update profile fields; None leaves a field unchanged.

        A new email is claimed atomically with the update, so two users can
        never end up sharing one.

        Returns:
            The updated user, or None if user not found

        Raises:
            ConflictError: Email belongs to another user
        """
        pass

    @abstractmethod
    def update_password_hash(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        """
        Replace a user's password hash.

        Returns:
            True if updated, False if user not found
        """
        pass

    @abstractmethod
    def update_reset_record(self, user_id: str, token: ResetToken) -> bool:
        """
        Store a reset token, overwriting any pending one (last write wins).

        Returns:
            True if stored, False if user not found
        """
        pass

    @abstractmethod
    def redeem_reset_record(
        self,
        secret: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        """
        Conditionally redeem a reset secret.

        In one atomic step: match the user whose pending secret equals
        `secret` and whose expiry is after `now`, set the new password hash,
        and clear the reset record. Of two concurrent calls with the same
        secret at most one succeeds.

        Returns:
            The updated user, or None if no pending record matched
        """
        pass

    @abstractmethod
    def clear_reset_record(self, user_id: str) -> bool:
        """
        Remove any pending reset token.

        Returns:
            True if a record was cleared, False otherwise
        """
        pass
