"""
Integration tests for password reset issuance and redemption.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from brew_auth.adapters.memory_store import MemoryCredentialStore
from brew_auth.adapters.password import verify_password
from brew_auth.config import Settings
from brew_auth.errors import (
    InvalidOrExpiredTokenError,
    InvalidRequestError,
    StoreUnavailableError,
)
from brew_auth.ports.dispatcher_port import ResetDispatcherPort, DispatchResult
from brew_auth.sdk.reset import ResetIssuer, RESET_REQUESTED_MESSAGE
from tests.factories import make_user


class RecordingDispatcher(ResetDispatcherPort):
    """Captures every message instead of sending it."""

    def __init__(self, success: bool = True):
        self.sent = []
        self._success = success

    def send_reset_message(self, destination, secret, display_name):
        self.sent.append((destination, secret, display_name))
        return DispatchResult(success=self._success, error=None if self._success else "down")


class ExplodingDispatcher(ResetDispatcherPort):

    def send_reset_message(self, destination, secret, display_name):
        raise RuntimeError("transport bug")


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


class TestResetIssuer:
    """Issue, supersede, redeem and expire reset secrets."""

    def setup_method(self):
        self.settings = Settings(jwt_secret="test-secret-key", bcrypt_rounds=4)
        self.store = MemoryCredentialStore()
        self.user = make_user()
        self.store.create(self.user)
        self.dispatcher = RecordingDispatcher()
        self.clock = FakeClock()
        self.issuer = ResetIssuer(self.store, self.dispatcher, self.settings, clock=self.clock)

    def teardown_method(self):
        self.issuer.shutdown(wait=True)

    def _pending_secret(self) -> str:
        return self.store.find_by_id(self.user.user_id).reset_token.secret

    def test_request_records_secret_and_dispatches(self):
        result = self.issuer.request_reset("ana@example.com")
        self.issuer.shutdown(wait=True)

        token = self.store.find_by_id(self.user.user_id).reset_token
        assert result.to_dict() == {"success": True, "message": RESET_REQUESTED_MESSAGE}
        assert token.expires_at == self.clock.now + timedelta(hours=1)
        assert self.dispatcher.sent == [("ana@example.com", token.secret, "Ana")]

    def test_unknown_email_same_response_no_mutation(self):
        known = self.issuer.request_reset("ana@example.com")
        unknown = self.issuer.request_reset("nobody@example.com")
        self.issuer.shutdown(wait=True)

        assert known.to_dict() == unknown.to_dict()
        assert len(self.dispatcher.sent) == 1

    def test_known_and_unknown_email_make_same_store_calls(self):
        calls = {}
        for email in ("ana@example.com", "nobody@example.com"):
            store = MagicMock(wraps=self.store)
            issuer = ResetIssuer(store, self.dispatcher, self.settings, clock=self.clock)
            issuer.request_reset(email)
            issuer.shutdown(wait=True)
            calls[email] = [c[0] for c in store.method_calls]

        assert calls["ana@example.com"] == calls["nobody@example.com"]
        assert calls["ana@example.com"] == ["find_by_email", "update_reset_record"]

    def test_slow_delivery_does_not_delay_response(self):
        release = threading.Event()
        started = threading.Event()

        class BlockingDispatcher(ResetDispatcherPort):
            def send_reset_message(self, destination, secret, display_name):
                started.set()
                release.wait(timeout=5)
                return DispatchResult(success=True)

        issuer = ResetIssuer(self.store, BlockingDispatcher(), self.settings)
        try:
            result = issuer.request_reset("ana@example.com")
            # Returned while delivery is still blocked
            assert result.success
            assert not release.is_set()
            assert started.wait(timeout=5)
        finally:
            release.set()
            issuer.shutdown(wait=True)

    def test_email_required(self):
        with pytest.raises(InvalidRequestError):
            self.issuer.request_reset("")

    def test_second_request_supersedes_first(self):
        self.issuer.request_reset("ana@example.com")
        first = self._pending_secret()
        self.issuer.request_reset("ana@example.com")
        second = self._pending_secret()

        assert first != second
        with pytest.raises(InvalidOrExpiredTokenError):
            self.issuer.redeem_reset(first, "newpass1")
        assert self.issuer.redeem_reset(second, "newpass1").user_id == self.user.user_id

    def test_redeem_sets_password_and_clears_record(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()

        self.issuer.redeem_reset(secret, "newpass1")

        stored = self.store.find_by_id(self.user.user_id)
        assert verify_password("newpass1", stored.password_hash)
        assert not verify_password("secret123", stored.password_hash)
        assert stored.reset_token is None
        assert stored.password_changed_at == self.clock.now

    def test_secret_is_single_use(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()

        self.issuer.redeem_reset(secret, "newpass1")
        with pytest.raises(InvalidOrExpiredTokenError):
            self.issuer.redeem_reset(secret, "newpass2")

        stored = self.store.find_by_id(self.user.user_id)
        assert verify_password("newpass1", stored.password_hash)

    def test_expired_secret_rejected(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()

        self.clock.now += timedelta(hours=1)
        with pytest.raises(InvalidOrExpiredTokenError):
            self.issuer.redeem_reset(secret, "newpass1")

    def test_secret_valid_just_before_expiry(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()

        self.clock.now += timedelta(minutes=59, seconds=59)
        assert self.issuer.redeem_reset(secret, "newpass1") is not None

    def test_unknown_or_empty_secret_rejected(self):
        with pytest.raises(InvalidOrExpiredTokenError):
            self.issuer.redeem_reset("not-a-secret", "newpass1")
        with pytest.raises(InvalidOrExpiredTokenError):
            self.issuer.redeem_reset("", "newpass1")

    def test_short_password_keeps_pending_record(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()

        with pytest.raises(InvalidRequestError):
            self.issuer.redeem_reset(secret, "123")

        assert self._pending_secret() == secret

    def test_concurrent_redemptions_single_winner(self):
        self.issuer.request_reset("ana@example.com")
        secret = self._pending_secret()
        barrier = threading.Barrier(8)

        def redeem(i):
            barrier.wait()
            try:
                self.issuer.redeem_reset(secret, f"newpass{i}")
                return True
            except InvalidOrExpiredTokenError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(redeem, range(8)))

        assert outcomes.count(True) == 1

    def test_store_outage_propagates(self):
        store = MagicMock()
        store.find_by_email.side_effect = StoreUnavailableError("down")
        issuer = ResetIssuer(store, self.dispatcher, self.settings)

        with pytest.raises(StoreUnavailableError):
            issuer.request_reset("ana@example.com")
        issuer.shutdown()

    def test_dispatch_failure_not_reported(self):
        issuer = ResetIssuer(self.store, RecordingDispatcher(success=False), self.settings)

        result = issuer.request_reset("ana@example.com")
        issuer.shutdown(wait=True)

        assert result.success
        assert result.dev_reset_link is None

    def test_dispatcher_exception_contained(self):
        issuer = ResetIssuer(self.store, ExplodingDispatcher(), self.settings)

        result = issuer.request_reset("ana@example.com")
        issuer.shutdown(wait=True)

        assert result.success


    def test_request_after_shutdown_still_succeeds(self):
        self.issuer.shutdown(wait=True)

        result = self.issuer.request_reset("ana@example.com")

        assert result.to_dict() == {"success": True, "message": RESET_REQUESTED_MESSAGE}
        assert self.store.find_by_id(self.user.user_id).reset_token is not None
        assert self.dispatcher.sent == []

class TestDevelopmentEscapeHatch:
    """The reset link is surfaced only in development when delivery failed."""

    def setup_method(self):
        self.store = MemoryCredentialStore()
        self.store.create(make_user())

    def _issuer(self, dispatcher, **overrides):
        settings = Settings(jwt_secret="test-secret-key", bcrypt_rounds=4,
                            expose_reset_secret=True, **overrides)
        return ResetIssuer(self.store, dispatcher, settings)

    def test_link_returned_when_delivery_fails(self):
        issuer = self._issuer(RecordingDispatcher(success=False))

        result = issuer.request_reset("ana@example.com")
        issuer.shutdown()

        secret = self.store.find_by_email("ana@example.com").reset_token.secret
        assert result.dev_reset_link.endswith(f"?token={secret}")
        assert result.to_dict()["devResetLink"] == result.dev_reset_link

    def test_no_link_when_delivered(self):
        issuer = self._issuer(RecordingDispatcher(success=True))

        result = issuer.request_reset("ana@example.com")
        issuer.shutdown()

        assert result.dev_reset_link is None

    def test_no_link_for_unknown_email(self):
        issuer = self._issuer(RecordingDispatcher(success=False))

        result = issuer.request_reset("nobody@example.com")
        issuer.shutdown()

        assert "devResetLink" not in result.to_dict()

    def test_link_returned_when_executor_shut_down(self):
        issuer = self._issuer(RecordingDispatcher(success=True))
        issuer.shutdown()

        result = issuer.request_reset("ana@example.com")

        secret = self.store.find_by_email("ana@example.com").reset_token.secret
        assert result.dev_reset_link.endswith(f"?token={secret}")
