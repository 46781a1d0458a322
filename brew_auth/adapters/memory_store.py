"""
Memory Credential Store - In-memory principal storage (testing only).
"""

import copy
import threading
from typing import Optional, Dict
from datetime import datetime
from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.domain.user import User
from brew_auth.domain.reset import ResetToken
from brew_auth.errors import ConflictError


class MemoryCredentialStore(CredentialStorePort):
    """
    In-memory credential storage.

    WARNING: Only for testing. Users are lost on restart.
    A lock stands in for the row-level atomicity of a real store.
    Returned users are copies; mutate through the store methods.
    """

    def __init__(self):
        """Initialize in-memory storage."""
        self._users: Dict[str, User] = {}
        self._email_index: Dict[str, str] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._email_index.get(email)
            return copy.deepcopy(self._users[user_id]) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def create(self, user: User) -> User:
        with self._lock:
            if user.email in self._email_index:
                raise ConflictError(f"email already registered: {user.user_id}")
            self._users[user.user_id] = copy.deepcopy(user)
            self._email_index[user.email] = user.user_id
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if not user:
                return None
            if email and email != user.email:
                if email in self._email_index:
                    raise ConflictError(f"email already registered: {user_id}")
                del self._email_index[user.email]
                self._email_index[email] = user_id
                user.email = email
            if name:
                user.name = name
            if phone is not None:
                user.phone = phone
            return copy.deepcopy(user)

    def update_password_hash(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if not user:
                return False
            user.password_hash = password_hash
            user.password_changed_at = changed_at
            return True

    def update_reset_record(self, user_id: str, token: ResetToken) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if not user:
                return False
            user.reset_token = copy.deepcopy(token)
            return True

    def redeem_reset_record(
        self,
        secret: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.reset_token and user.reset_token.matches(secret, now):
                    user.password_hash = password_hash
                    user.password_changed_at = now
                    user.reset_token = None
                    return copy.deepcopy(user)
            return None

    def clear_reset_record(self, user_id: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if not user or user.reset_token is None:
                return False
            user.reset_token = None
            return True
