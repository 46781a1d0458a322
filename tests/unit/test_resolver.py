"""
Unit tests for carrier precedence and session resolution.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from brew_auth.adapters.jwt_codec import JWTTokenCodec
from brew_auth.adapters.memory_store import MemoryCredentialStore
from brew_auth.domain.session import SessionClaims, CarrierName
from brew_auth.domain.user import Role
from brew_auth.errors import StoreUnavailableError
from brew_auth.sdk.resolver import SessionResolver
from tests.factories import make_user

ISSUED_AT_MS = 1_700_000_000_000


def _claims(user_id: str, role: Role, issued_at: int = ISSUED_AT_MS) -> SessionClaims:
    return SessionClaims(
        user_id=user_id,
        name=user_id,
        email=f"{user_id}@example.com",
        role=role,
        issued_at=issued_at,
    )


class TestCarrierPrecedence:
    """Admin -> member -> legacy; the first present carrier is authoritative."""

    def setup_method(self):
        self.codec = JWTTokenCodec(secret="test-secret-key", clock=lambda: ISSUED_AT_MS / 1000)
        self.resolver = SessionResolver(self.codec)
        self.admin_token = self.codec.issue(_claims("adm_1", Role.ADMIN), ttl=3600)
        self.member_token = self.codec.issue(_claims("mem_1", Role.MEMBER), ttl=3600)

    def test_no_carriers(self):
        assert self.resolver.resolve({}) is None

    def test_member_carrier(self):
        found = self.resolver.resolve_carrier({"member_token": self.member_token})

        assert found is not None
        carrier, claims = found
        assert carrier == CarrierName.MEMBER
        assert claims.user_id == "mem_1"

    def test_admin_beats_member(self):
        claims = self.resolver.resolve({
            "member_token": self.member_token,
            "admin_token": self.admin_token,
        })

        assert claims.user_id == "adm_1"
        assert claims.is_admin

    def test_invalid_admin_masks_valid_member(self):
        """A bad higher-precedence carrier makes the request unauthenticated."""
        claims = self.resolver.resolve({
            "admin_token": "garbage",
            "member_token": self.member_token,
        })

        assert claims is None

    def test_expired_admin_masks_valid_member(self):
        expired = JWTTokenCodec(
            secret="test-secret-key",
            clock=lambda: ISSUED_AT_MS / 1000,
        ).issue(_claims("adm_1", Role.ADMIN, issued_at=ISSUED_AT_MS - 7_200_000), ttl=3600)

        assert self.resolver.resolve({
            "admin_token": expired,
            "member_token": self.member_token,
        }) is None

    def test_legacy_carrier_still_honoured(self):
        found = self.resolver.resolve_carrier({"auth_token": self.member_token})

        assert found[0] == CarrierName.LEGACY
        assert found[1].user_id == "mem_1"

    def test_member_beats_legacy(self):
        claims = self.resolver.resolve({
            "auth_token": self.admin_token,
            "member_token": self.member_token,
        })

        assert claims.user_id == "mem_1"

    def test_empty_carrier_counts_as_absent(self):
        claims = self.resolver.resolve({
            "admin_token": "",
            "member_token": self.member_token,
        })

        assert claims.user_id == "mem_1"

    def test_unrelated_cookies_ignored(self):
        assert self.resolver.resolve({"theme": "dark", "session": self.member_token}) is None

    def test_authoritative_carrier(self):
        assert SessionResolver.authoritative_carrier({}) is None
        assert SessionResolver.authoritative_carrier(
            {"auth_token": "x", "admin_token": "y"}
        ) == CarrierName.ADMIN

    def test_store_not_consulted_without_revocation(self):
        store = MagicMock()
        resolver = SessionResolver(self.codec, store=store)

        assert resolver.resolve({"member_token": self.member_token}) is not None
        store.find_by_id.assert_not_called()


class TestRevocationOnPasswordChange:
    """Optional rejection of tokens issued before the last password change."""

    def setup_method(self):
        self.codec = JWTTokenCodec(secret="test-secret-key", clock=lambda: ISSUED_AT_MS / 1000)
        self.store = MemoryCredentialStore()
        self.user = make_user(user_id="mem_1")
        self.store.create(self.user)
        self.resolver = SessionResolver(self.codec, store=self.store, revoke_on_password_change=True)
        self.token = self.codec.issue(_claims("mem_1", Role.MEMBER), ttl=3600)

    def test_requires_store(self):
        with pytest.raises(ValueError):
            SessionResolver(self.codec, revoke_on_password_change=True)

    def test_never_changed(self):
        assert self.resolver.resolve({"member_token": self.token}) is not None

    def test_changed_before_issue(self):
        changed = datetime.fromtimestamp((ISSUED_AT_MS - 1000) / 1000, tz=timezone.utc)
        self.store.update_password_hash("mem_1", self.user.password_hash, changed)

        assert self.resolver.resolve({"member_token": self.token}) is not None

    def test_changed_after_issue(self):
        changed = datetime.fromtimestamp((ISSUED_AT_MS + 1000) / 1000, tz=timezone.utc)
        self.store.update_password_hash("mem_1", self.user.password_hash, changed)

        assert self.resolver.resolve({"member_token": self.token}) is None

    def test_deleted_principal(self):
        token = self.codec.issue(_claims("gone", Role.MEMBER), ttl=3600)

        assert self.resolver.resolve({"member_token": token}) is None

    def test_store_failure_propagates(self):
        """An unreachable store is an error, never silently 'unauthenticated'."""
        store = MagicMock()
        store.find_by_id.side_effect = StoreUnavailableError("down")
        resolver = SessionResolver(self.codec, store=store, revoke_on_password_change=True)

        with pytest.raises(StoreUnavailableError):
            resolver.resolve({"member_token": self.token})
