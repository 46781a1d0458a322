"""
Auth Client - High-level SDK for auth operations.

Single entry point for request handlers: login/logout, session resolution,
authorization and the password reset flow.
"""

import re
import uuid
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List, Mapping, Tuple

from brew_auth.config import Settings, get_settings
from brew_auth.ports.token_port import TokenCodecPort
from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.ports.dispatcher_port import ResetDispatcherPort
from brew_auth.ports.policy_port import AuthorizationPort, AuthorizationDecision, Capability
from brew_auth.domain.user import User, Role
from brew_auth.domain.session import SessionClaims, CarrierName
from brew_auth.adapters.jwt_codec import JWTTokenCodec
from brew_auth.adapters.role_gate import RoleAuthorizationGate
from brew_auth.adapters.logging_dispatcher import LoggingResetDispatcher
from brew_auth.adapters.http_dispatcher import HttpResetDispatcher
from brew_auth.adapters.smtp_dispatcher import SmtpResetDispatcher
from brew_auth.adapters.password import (
    hash_password,
    verify_password,
    burn_verify,
    check_new_password,
)
from brew_auth.sdk.resolver import SessionResolver
from brew_auth.sdk.cookies import CookiePolicy, CookieSpec
from brew_auth.sdk.reset import ResetIssuer, ResetRequestResult
from brew_auth.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    UnauthorizedError,
)
from brew_auth.observability import get_logger

logger = get_logger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid email or password"
MIN_PHONE_DIGITS = 9


@dataclass
class LoginResult:
    """Successful login: the user, their token and the cookies to set."""
    user: User
    token: str
    cookies: List[CookieSpec]


@dataclass
class ProfileUpdateResult:
    """Updated profile plus the re-issued cookie for the caller's carrier slot."""
    user: User
    token: str
    cookie: CookieSpec


def normalize_phone(phone: Optional[str]) -> str:
    """Keep digits and '+'; reject numbers that are too short."""
    normalized = re.sub(r"[^\d+]", "", (phone or "").strip())
    if len(normalized) < MIN_PHONE_DIGITS:
        raise InvalidRequestError("invalid phone", public_message="Phone number is not valid")
    return normalized


class AuthClient:
    """
    High-level auth client combining tokens, store, gate and reset flow.

    Example:
        from brew_auth import AuthClient
        from brew_auth.adapters import MemoryCredentialStore

        client = AuthClient.from_settings(MemoryCredentialStore())

        client.register("ana@example.com", "Ana", "secret123", "0812345678")
        result = client.login("ana@example.com", "secret123")

        principal = client.resolve_session({"member_token": result.token})
        client.enforce(principal, Capability.authenticated())
    """

    def __init__(
        self,
        store: CredentialStorePort,
        codec: TokenCodecPort,
        settings: Optional[Settings] = None,
        gate: Optional[AuthorizationPort] = None,
        dispatcher: Optional[ResetDispatcherPort] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize auth client with adapters.

        Args:
            store: Credential store (required)
            codec: Session token codec (required)
            settings: Configuration (default: environment)
            gate: Authorization gate (default: RoleAuthorizationGate)
            dispatcher: Reset delivery (default: LoggingResetDispatcher)
            executor: Runs reset deliveries
        """
        self._settings = settings or get_settings()
        self._store = store
        self._codec = codec
        self._gate = gate or RoleAuthorizationGate()
        self._resolver = SessionResolver(
            codec,
            store=store,
            revoke_on_password_change=self._settings.revoke_on_password_change,
        )
        self._cookies = CookiePolicy(
            max_age=self._settings.session_ttl_seconds,
            secure=self._settings.cookie_secure,
            same_site=self._settings.cookie_same_site,
        )
        self._reset = ResetIssuer(
            store,
            dispatcher or LoggingResetDispatcher(),
            self._settings,
            executor=executor,
        )

    @classmethod
    def from_settings(
        cls,
        store: CredentialStorePort,
        settings: Optional[Settings] = None,
    ) -> "AuthClient":
        """Build a client with the codec and mail transport the settings describe."""
        settings = settings or get_settings()
        codec = JWTTokenCodec(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
        )
        return cls(store, codec, settings=settings, dispatcher=build_dispatcher(settings))

    @property
    def cookies(self) -> CookiePolicy:
        return self._cookies

    @property
    def settings(self) -> Settings:
        return self._settings

    # --- Accounts ---------------------------------------------------------

    def register(self, email: str, name: str, password: str, phone: str) -> User:
        """
        Register a member account.

        Raises:
            InvalidRequestError: Missing fields, short password, bad phone
            ConflictError: Email already registered
        """
        if not email or not name:
            raise InvalidRequestError(
                "missing fields",
                public_message="Name, email, phone and password are required",
            )
        normalized_phone = normalize_phone(phone)
        check_new_password(password, self._settings.min_password_length)

        if self._store.find_by_email(email) is not None:
            raise ConflictError("email already registered")

        user = User(
            user_id=uuid.uuid4().hex,
            email=email,
            name=name,
            phone=normalized_phone,
            password_hash=hash_password(password, rounds=self._settings.bcrypt_rounds),
            role=Role.MEMBER,
        )
        self._store.create(user)
        logger.info("user_registered", user_id=user.user_id, role=user.role.value)
        return user

    def login(self, email: str, password: str, login_type: Optional[str] = None) -> LoginResult:
        """
        Verify credentials and issue a session.

        Args:
            email: Account email
            password: Plain password
            login_type: "admin" for the back-office login form

        Returns:
            LoginResult with token and cookies

        Raises:
            InvalidRequestError: Missing email or password
            UnauthorizedError: Unknown email or wrong password (same message)
            ForbiddenError: Admin login attempted by a member
        """
        if not email or not password:
            raise InvalidRequestError(
                "missing credentials",
                public_message="Email and password are required",
            )

        user = self._store.find_by_email(email)
        if user is None:
            burn_verify(password, rounds=self._settings.bcrypt_rounds)
            raise UnauthorizedError("unknown email", public_message=LOGIN_FAILED_MESSAGE)

        if not verify_password(password, user.password_hash):
            raise UnauthorizedError("wrong password", public_message=LOGIN_FAILED_MESSAGE)

        if login_type == "admin" and not user.is_admin:
            raise ForbiddenError(f"member {user.user_id} used admin login")

        token, cookies = self.issue_session(user)
        logger.info("login", user_id=user.user_id, role=user.role.value)
        return LoginResult(user=user, token=token, cookies=cookies)

    def issue_session(self, user: User) -> Tuple[str, List[CookieSpec]]:
        """Issue a fresh token and the role's carrier cookies."""
        claims = SessionClaims.for_user(user)
        token = self._codec.issue(claims, self._settings.session_ttl_seconds)
        return token, self._cookies.issue_session_cookie(user.role, token)

    def logout(self) -> List[CookieSpec]:
        """Cookies that clear every carrier. Tokens are not revoked server-side."""
        return self._cookies.clear_session_cookies()

    def clear_all(self) -> List[CookieSpec]:
        """Cookies that clear every carrier, including legacy paths."""
        return self._cookies.clear_all()

    def update_profile(
        self,
        carriers: Mapping[str, str],
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> ProfileUpdateResult:
        """
        Update the logged-in principal's profile and refresh their session.

        The token embeds name and email, so a fresh one is issued into the
        same carrier slot the request arrived on.

        Args:
            carriers: Request cookies
            name: New display name (empty keeps the current one)
            email: New email, must not belong to another account
            phone: New phone, normalized like at registration

        Returns:
            ProfileUpdateResult with the updated user and replacement cookie

        Raises:
            UnauthorizedError: Not logged in, or the account no longer exists
            InvalidRequestError: Bad phone or empty email
            ConflictError: Email belongs to another account
        """
        resolved = self.resolve_carrier(carriers)
        if resolved is None:
            raise UnauthorizedError("no session for profile update")
        carrier, principal = resolved

        if email is not None and not email.strip():
            raise InvalidRequestError("empty email", public_message="Email is required")
        normalized_phone = normalize_phone(phone) if phone is not None else None

        user = self._store.update_profile(
            principal.user_id,
            name=name or None,
            email=email.strip() if email else None,
            phone=normalized_phone,
        )
        if user is None:
            raise UnauthorizedError(f"principal {principal.user_id} no longer exists")

        token = self._codec.issue(SessionClaims.for_user(user), self._settings.session_ttl_seconds)
        logger.info("profile_updated", user_id=user.user_id, carrier=carrier.value)
        return ProfileUpdateResult(
            user=user,
            token=token,
            cookie=self._cookies.reissue(carrier, token),
        )

    # --- Sessions & authorization ----------------------------------------

    def resolve_session(self, carriers: Mapping[str, str]) -> Optional[SessionClaims]:
        return self._resolver.resolve(carriers)

    def resolve_carrier(
        self,
        carriers: Mapping[str, str],
    ) -> Optional[Tuple[CarrierName, SessionClaims]]:
        return self._resolver.resolve_carrier(carriers)

    def authorize(
        self,
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> AuthorizationDecision:
        return self._gate.authorize(principal, capability)

    def enforce(
        self,
        principal: Optional[SessionClaims],
        capability: Capability,
    ) -> Optional[SessionClaims]:
        return self._gate.enforce(principal, capability)

    def current_user(self, principal: Optional[SessionClaims]) -> User:
        """
        Load the full record for a resolved principal.

        Raises:
            UnauthorizedError: No principal, or the account no longer exists
        """
        self.enforce(principal, Capability.authenticated())
        user = self._store.find_by_id(principal.user_id)
        if user is None:
            raise UnauthorizedError(f"principal {principal.user_id} no longer exists")
        return user

    def change_password(
        self,
        principal: Optional[SessionClaims],
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the password of the logged-in principal.

        Existing tokens stay valid unless revoke_on_password_change is set.

        Raises:
            UnauthorizedError: Not logged in
            InvalidRequestError: Current password wrong or new one too short
        """
        user = self.current_user(principal)
        if not current_password:
            raise InvalidRequestError(
                "missing current password",
                public_message="Current and new password are required",
            )
        check_new_password(new_password, self._settings.min_password_length)

        if not verify_password(current_password, user.password_hash):
            raise InvalidRequestError(
                "wrong current password",
                public_message="Current password is incorrect",
            )

        self._store.update_password_hash(
            user.user_id,
            hash_password(new_password, rounds=self._settings.bcrypt_rounds),
            datetime.now(timezone.utc),
        )
        logger.info("password_changed", user_id=user.user_id)

    # --- Password reset ---------------------------------------------------

    def request_reset(self, email: str) -> ResetRequestResult:
        return self._reset.request_reset(email)

    def redeem_reset(self, secret: str, new_password: str) -> User:
        return self._reset.redeem_reset(secret, new_password)

    def shutdown(self) -> None:
        self._reset.shutdown(wait=True)


def build_dispatcher(settings: Settings) -> ResetDispatcherPort:
    """Mail API if configured, else SMTP if configured, else log only."""
    if settings.mail_api_url:
        return HttpResetDispatcher(
            api_url=settings.mail_api_url,
            reset_url_base=settings.reset_url_base,
            sender=settings.mail_from,
            api_key=settings.mail_api_key,
            timeout=settings.dispatch_timeout_seconds,
        )
    if settings.smtp_host:
        return SmtpResetDispatcher(
            host=settings.smtp_host,
            port=settings.smtp_port,
            reset_url_base=settings.reset_url_base,
            sender=settings.mail_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            timeout=settings.dispatch_timeout_seconds,
        )
    return LoggingResetDispatcher()
