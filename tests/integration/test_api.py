"""
Integration tests for the FastAPI surface.
"""

from fastapi import Depends
from fastapi.testclient import TestClient

from brew_auth import AuthClient, Capability, Role
from brew_auth.adapters import MemoryCredentialStore
from brew_auth.adapters.password import hash_password
from brew_auth.api import create_app, require
from brew_auth.config import Settings
from brew_auth.domain.user import User
from brew_auth.errors import StoreUnavailableError

REGISTRATION = {
    "email": "ana@example.com",
    "name": "Ana",
    "password": "secret123",
    "phone": "0812345678",
}


class TestAuthAPI:

    def setup_method(self):
        self.store = MemoryCredentialStore()
        self.auth = AuthClient.from_settings(
            self.store, Settings(jwt_secret="test-secret-key", bcrypt_rounds=4)
        )
        self.app = create_app(self.auth)

        @self.app.get("/admin/orders")
        def list_orders(principal=Depends(require(Capability.admin_only()))):
            return {"orders": [], "viewer": principal.user_id}

        self.client = TestClient(self.app)
        self.client.post("/auth/register", json=REGISTRATION)

    def teardown_method(self):
        self.auth.shutdown()

    def _login(self, email="ana@example.com", password="secret123", **extra):
        return self.client.post("/auth/login", json={"email": email, "password": password, **extra})

    def test_health(self):
        assert self.client.get("/health").json() == {"status": "ok"}

    def test_register(self):
        response = self.client.post("/auth/register", json={**REGISTRATION, "email": "ben@example.com"})

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "ben@example.com"
        assert "password_hash" not in response.json()["user"]

    def test_register_duplicate(self):
        response = self.client.post("/auth/register", json=REGISTRATION)

        assert response.status_code == 409
        assert response.json() == {"error": "Email is already registered"}

    def test_register_missing_fields(self):
        response = self.client.post("/auth/register", json={"email": "ben@example.com"})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_login_sets_member_cookie(self):
        response = self._login()

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "member"
        set_cookie = ";".join(response.headers.get_list("set-cookie"))
        assert "member_token=" in set_cookie
        assert "HttpOnly" in set_cookie
        assert self.client.cookies.get("member_token")

    def test_login_failure(self):
        unknown = self._login(email="nobody@example.com")
        wrong = self._login(password="wrong-password")

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"error": "Invalid email or password"}

    def test_me(self):
        assert self.client.get("/auth/me").status_code == 401

        self._login()
        response = self.client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ana@example.com"

    def test_invalid_cookie_is_unauthenticated(self):
        self.client.cookies.set("member_token", "garbage")

        response = self.client.get("/auth/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Access denied"}

    def test_admin_route(self):
        self._login()
        member = self.client.get("/admin/orders")
        assert member.status_code == 403
        assert member.json() == {"error": "Access denied"}

        self.store.create(User(
            user_id="adm_1",
            email="root@example.com",
            name="Root",
            password_hash=hash_password("rootpass", rounds=4),
            role=Role.ADMIN,
        ))
        self._login("root@example.com", "rootpass", login_type="admin")
        admin = self.client.get("/admin/orders")

        assert admin.status_code == 200
        assert admin.json()["viewer"] == "adm_1"

    def test_logout(self):
        self._login()

        response = self.client.post("/auth/logout")

        assert response.status_code == 200
        assert not self.client.cookies.get("member_token")
        assert self.client.get("/auth/me").status_code == 401

    def test_clear_all(self):
        response = self.client.get("/auth/clear-all")

        cleared = response.headers.get_list("set-cookie")
        assert len(cleared) == 4
        assert any("Path=/admin" in header for header in cleared)

    def test_change_password(self):
        self._login()

        response = self.client.post("/auth/change-password", json={
            "current_password": "secret123",
            "new_password": "newpass1",
        })

        assert response.status_code == 200
        assert self._login(password="newpass1").status_code == 200

    def test_update_profile(self):
        self._login()
        before = self.client.cookies.get("member_token")

        response = self.client.patch("/auth/profile", json={"name": "Ana Maria"})

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Ana Maria"
        set_cookie = response.headers.get_list("set-cookie")
        assert len(set_cookie) == 1 and set_cookie[0].startswith("member_token=")
        assert self.client.cookies.get("member_token") != before
        assert self.client.get("/auth/me").json()["user"]["name"] == "Ana Maria"

    def test_update_profile_requires_login(self):
        assert self.client.patch("/auth/profile", json={"name": "X"}).status_code == 401

    def test_update_profile_email_taken(self):
        self.client.post("/auth/register", json={**REGISTRATION, "email": "ben@example.com"})
        self._login()

        response = self.client.patch("/auth/profile", json={"email": "ben@example.com"})

        assert response.status_code == 409

    def test_forgot_password_same_response(self):
        known = self.client.post("/auth/forgot-password", json={"email": "ana@example.com"})
        unknown = self.client.post("/auth/forgot-password", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert known.json()["success"] is True

    def test_reset_password(self):
        self.client.post("/auth/forgot-password", json={"email": "ana@example.com"})
        secret = self.store.find_by_email("ana@example.com").reset_token.secret

        ok = self.client.post("/auth/reset-password", json={"token": secret, "password": "newpass1"})
        again = self.client.post("/auth/reset-password", json={"token": secret, "password": "newpass2"})

        assert ok.status_code == 200
        assert again.status_code == 400
        assert again.json() == {"error": "Reset link is invalid or has expired"}
        assert self._login(password="newpass1").status_code == 200

    def test_store_outage_is_503(self):
        def down(email):
            raise StoreUnavailableError("down")

        self.store.find_by_email = down

        response = self._login()

        assert response.status_code == 503
        assert "down" not in response.json()["error"]
