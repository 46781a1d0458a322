"""
Redis Credential Store - Redis-backed principal storage.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone

import redis

from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.domain.user import User, Role
from brew_auth.domain.reset import ResetToken
from brew_auth.errors import ConflictError, StoreUnavailableError

# KEYS[1] email index key, KEYS[2] user hash
# ARGV[1] user id, ARGV[2..] field/value pairs
_CREATE_LUA = """
if redis.call('SET', KEYS[1], ARGV[1], 'NX') == false then
    return 0
end
redis.call('HSET', KEYS[2], unpack(ARGV, 2))
return 1
"""

# KEYS[1] user hash
# ARGV[1] email key prefix, ARGV[2] new email, ARGV[3] user id, ARGV[4..] field/value pairs
_UPDATE_PROFILE_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
local current = redis.call('HGET', KEYS[1], 'email')
if ARGV[2] ~= '' and ARGV[2] ~= current then
    if redis.call('SET', ARGV[1] .. ARGV[2], ARGV[3], 'NX') == false then
        return -1
    end
    redis.call('DEL', ARGV[1] .. current)
    redis.call('HSET', KEYS[1], 'email', ARGV[2])
end
if #ARGV > 3 then
    redis.call('HSET', KEYS[1], unpack(ARGV, 4))
end
return 1
"""

# KEYS[1] user hash, KEYS[2] new reset index key
# ARGV[1] reset index prefix, ARGV[2] secret, ARGV[3] expires (epoch ms), ARGV[4] user id
_SET_RESET_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
local old = redis.call('HGET', KEYS[1], 'reset_secret')
if old then
    redis.call('DEL', ARGV[1] .. old)
end
redis.call('HSET', KEYS[1], 'reset_secret', ARGV[2], 'reset_expires_at', ARGV[3])
redis.call('SET', KEYS[2], ARGV[4], 'PXAT', ARGV[3])
return 1
"""

# KEYS[1] reset index key
# ARGV[1] user key prefix, ARGV[2] secret, ARGV[3] now (ms), ARGV[4] new hash, ARGV[5] changed_at
_REDEEM_LUA = """
local user_id = redis.call('GET', KEYS[1])
if not user_id then
    return false
end
local user_key = ARGV[1] .. user_id
local stored = redis.call('HGET', user_key, 'reset_secret')
local expires = tonumber(redis.call('HGET', user_key, 'reset_expires_at') or '0')
if stored ~= ARGV[2] or expires <= tonumber(ARGV[3]) then
    return false
end
redis.call('HSET', user_key, 'password_hash', ARGV[4], 'password_changed_at', ARGV[5])
redis.call('HDEL', user_key, 'reset_secret', 'reset_expires_at')
redis.call('DEL', KEYS[1])
return user_id
"""

# KEYS[1] user hash; ARGV[1] reset index prefix
_CLEAR_RESET_LUA = """
local old = redis.call('HGET', KEYS[1], 'reset_secret')
if not old then
    return 0
end
redis.call('DEL', ARGV[1] .. old)
redis.call('HDEL', KEYS[1], 'reset_secret', 'reset_expires_at')
return 1
"""


def _to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class RedisCredentialStore(CredentialStorePort):
    """
    Redis-backed credential storage.

    Layout:
    - {prefix}user:{user_id}  hash of user fields
    - {prefix}email:{email}   user_id (unique index, SET NX)
    - {prefix}reset:{secret}  user_id, expires with the reset token

    Creation, profile updates, reset updates and redemptions run as Lua
    scripts, so the email index never drifts from the user hashes. The
    client must be created with decode_responses=True.
    """

    def __init__(
        self,
        redis_client=None,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "brew:auth:",
    ):
        """
        Initialize Redis credential store.

        Args:
            redis_client: Redis client instance (redis.Redis)
            redis_url: Used when no client is given
            prefix: Key prefix
        """
        self._redis = redis_client
        self._redis_url = redis_url
        self._prefix = prefix
        self._scripts: Dict[str, Any] = {}

    def _get_redis(self):
        """Lazy load Redis client."""
        if self._redis is None:
            self._redis = redis.Redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def _script(self, name: str, source: str):
        if name not in self._scripts:
            self._scripts[name] = self._get_redis().register_script(source)
        return self._scripts[name]

    def _user_key(self, user_id: str) -> str:
        return f"{self._prefix}user:{user_id}"

    def _email_key(self, email: str) -> str:
        return f"{self._prefix}email:{email}"

    def _reset_prefix(self) -> str:
        return f"{self._prefix}reset:"

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            user_id = self._get_redis().get(self._email_key(email))
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")

        if not user_id:
            return None
        return self.find_by_id(user_id)

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            data = self._get_redis().hgetall(self._user_key(user_id))
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")

        if not data:
            return None
        return self._hash_to_user(data)

    def create(self, user: User) -> User:
        fields = self._user_to_hash(user)
        pairs = [item for field in fields.items() for item in field]
        try:
            created = self._script("create", _CREATE_LUA)(
                keys=[self._email_key(user.email), self._user_key(user.user_id)],
                args=[user.user_id, *pairs],
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")
        if not created:
            raise ConflictError(f"email already registered: {user.user_id}")
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[User]:
        pairs = []
        if name:
            pairs += ["name", name]
        if phone is not None:
            pairs += ["phone", phone]
        try:
            updated = self._script("update_profile", _UPDATE_PROFILE_LUA)(
                keys=[self._user_key(user_id)],
                args=[f"{self._prefix}email:", email or "", user_id, *pairs],
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")

        if updated == -1:
            raise ConflictError(f"email already registered: {user_id}")
        if not updated:
            return None
        return self.find_by_id(user_id)

    def update_password_hash(self, user_id: str, password_hash: str, changed_at: datetime) -> bool:
        r = self._get_redis()
        key = self._user_key(user_id)
        try:
            if not r.exists(key):
                return False
            r.hset(key, mapping={
                "password_hash": password_hash,
                "password_changed_at": changed_at.isoformat(),
            })
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")
        return True

    def update_reset_record(self, user_id: str, token: ResetToken) -> bool:
        # The index key expires at the token's own absolute expiry (PXAT).
        expires_ms = _to_millis(token.expires_at)
        try:
            stored = self._script("set_reset", _SET_RESET_LUA)(
                keys=[self._user_key(user_id), self._reset_prefix() + token.secret],
                args=[self._reset_prefix(), token.secret, expires_ms, user_id],
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")
        return bool(stored)

    def redeem_reset_record(
        self,
        secret: str,
        password_hash: str,
        now: datetime,
    ) -> Optional[User]:
        if not secret:
            return None
        try:
            user_id = self._script("redeem", _REDEEM_LUA)(
                keys=[self._reset_prefix() + secret],
                args=[
                    f"{self._prefix}user:",
                    secret,
                    _to_millis(now),
                    password_hash,
                    now.isoformat(),
                ],
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")

        if not user_id:
            return None
        return self.find_by_id(user_id)

    def clear_reset_record(self, user_id: str) -> bool:
        try:
            cleared = self._script("clear_reset", _CLEAR_RESET_LUA)(
                keys=[self._user_key(user_id)],
                args=[self._reset_prefix()],
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"redis: {e}")
        return bool(cleared)

    @staticmethod
    def _user_to_hash(user: User) -> Dict[str, str]:
        """Flatten a user into hash fields (no None values)."""
        fields = {
            "user_id": user.user_id,
            "email": user.email,
            "name": user.name,
            "password_hash": user.password_hash,
            "role": user.role.value,
            "created_at": user.created_at.isoformat(),
        }
        if user.phone:
            fields["phone"] = user.phone
        if user.password_changed_at:
            fields["password_changed_at"] = user.password_changed_at.isoformat()
        if user.reset_token:
            fields["reset_secret"] = user.reset_token.secret
            fields["reset_expires_at"] = str(_to_millis(user.reset_token.expires_at))
        return fields

    @staticmethod
    def _hash_to_user(data: Dict[str, str]) -> User:
        reset_token = None
        if data.get("reset_secret"):
            reset_token = ResetToken(
                secret=data["reset_secret"],
                expires_at=datetime.fromtimestamp(
                    int(data["reset_expires_at"]) / 1000, tz=timezone.utc
                ),
            )

        return User(
            user_id=data["user_id"],
            email=data["email"],
            name=data["name"],
            password_hash=data["password_hash"],
            role=Role(data.get("role", "member")),
            phone=data.get("phone"),
            created_at=datetime.fromisoformat(data["created_at"]),
            reset_token=reset_token,
            password_changed_at=(
                datetime.fromisoformat(data["password_changed_at"])
                if data.get("password_changed_at")
                else None
            ),
        )
