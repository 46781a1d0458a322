"""
Reset Issuer - Issues and redeems single-use password reset secrets.

Flow:
    request_reset(email)   unauthenticated; always reports success
    -> secret mailed out of band (never in the response)
    redeem_reset(secret, new_password)
    -> password replaced and the record cleared in one conditional write
"""

from concurrent.futures import Executor, ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from brew_auth.config import Settings
from brew_auth.ports.store_port import CredentialStorePort
from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.domain.reset import ResetToken, reset_link
from brew_auth.domain.user import User
from brew_auth.adapters.password import hash_password, check_new_password
from brew_auth.errors import InvalidOrExpiredTokenError, InvalidRequestError
from brew_auth.observability import get_logger

logger = get_logger(__name__)

RESET_REQUESTED_MESSAGE = "If the email is registered, reset instructions have been sent."

# Never issued as a real id (those are uuid4 hex); updates against it match nothing.
ABSENT_USER_ID = "no-such-user"


@dataclass
class ResetRequestResult:
    """
    Response to a reset request.

    Identical for known and unknown emails. `dev_reset_link` is only ever
    set outside production with the escape hatch enabled.
    """
    success: bool = True
    message: str = RESET_REQUESTED_MESSAGE
    dev_reset_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.dev_reset_link:
            data["devResetLink"] = self.dev_reset_link
        return data


class ResetIssuer:
    """
    Password reset issuance and redemption.

    Delivery runs on an executor so the caller's latency does not depend on
    whether an account exists or on the mail transport's health. Delivery
    failures are logged and never reach the caller.
    """

    def __init__(
        self,
        store: CredentialStorePort,
        dispatcher: ResetDispatcherPort,
        settings: Settings,
        executor: Optional[Executor] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize reset issuer.

        Args:
            store: Credential store
            dispatcher: Outbound delivery of the secret
            settings: TTLs, password policy and the development escape hatch
            executor: Runs deliveries (default: a small thread pool)
            clock: Returns the current UTC time
        """
        self._store = store
        self._dispatcher = dispatcher
        self._settings = settings
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="brew-auth-reset"
        )
        self._clock = clock

    @property
    def _expose_secret(self) -> bool:
        return self._settings.expose_reset_secret and not self._settings.is_production

    def request_reset(self, email: str) -> ResetRequestResult:
        """
        Start a password reset for `email`.

        Unknown emails cause no mutation. Known emails get a fresh secret
        that supersedes any pending one.

        Returns:
            ResetRequestResult (same shape either way)

        Raises:
            InvalidRequestError: Email missing
            StoreUnavailableError: Store unreachable
        """
        if not email:
            raise InvalidRequestError("email missing", public_message="Email is required")

        # Both paths generate a token and make the same two store calls, so
        # response time does not tell whether the account exists.
        token = ResetToken.generate(ttl=self._settings.reset_ttl_seconds, now=self._clock())

        user = self._store.find_by_email(email)
        target_id = user.user_id if user is not None else ABSENT_USER_ID
        stored = self._store.update_reset_record(target_id, token)

        if user is None or not stored:
            logger.info("reset_requested", account_found=False)
            return ResetRequestResult()

        logger.info("reset_requested", account_found=True, user_id=user.user_id)
        try:
            future = self._executor.submit(self._dispatch, user, token.secret)
        except RuntimeError:
            # Executor already shut down; the record is written, delivery is not
            logger.error("reset_dispatch_failed", user_id=user.user_id, error="executor shut down")
            future = None

        if self._expose_secret:
            if future is None:
                delivered = DispatchResult(success=False, error="executor shut down")
            else:
                try:
                    delivered = future.result(timeout=self._settings.dispatch_timeout_seconds)
                except FutureTimeout:
                    delivered = DispatchResult(success=False, error="dispatch timed out")
            if not delivered.success:
                return ResetRequestResult(
                    dev_reset_link=reset_link(self._settings.reset_url_base, token.secret),
                )

        return ResetRequestResult()

    def redeem_reset(self, secret: str, new_password: str) -> User:
        """
        Redeem a reset secret and set a new password.

        The store matches the secret and expiry, sets the hash and clears
        the record in one conditional update, so a secret works once.

        Returns:
            The updated user

        Raises:
            InvalidRequestError: New password fails the policy
            InvalidOrExpiredTokenError: Secret absent, mismatched, expired or used
        """
        check_new_password(new_password, self._settings.min_password_length)

        # Hash before the lookup so a bad secret costs as much as a good one.
        password_hash = hash_password(new_password, rounds=self._settings.bcrypt_rounds)

        user = self._store.redeem_reset_record(secret or "", password_hash, self._clock())
        if user is None:
            logger.info("reset_redeem_rejected")
            raise InvalidOrExpiredTokenError("no pending reset matched")

        logger.info("reset_redeemed", user_id=user.user_id)
        return user

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting deliveries; optionally wait for pending ones."""
        self._executor.shutdown(wait=wait)

    def _dispatch(self, user: User, secret: str) -> DispatchResult:
        try:
            result = self._dispatcher.send_reset_message(user.email, secret, user.name)
        except Exception as e:
            # Runs detached from the request; nobody else would see this.
            logger.exception("reset_dispatch_error", user_id=user.user_id)
            return DispatchResult(success=False, error=type(e).__name__)

        if not result.success:
            logger.error("reset_dispatch_failed", user_id=user.user_id, error=result.error)
        return result
