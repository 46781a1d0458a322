"""
Basic Authentication Example - Cookie-carried JWT sessions with an in-memory store.
"""

from brew_auth import AuthClient, Capability
from brew_auth.adapters import MemoryCredentialStore
from brew_auth.config import Settings
from brew_auth.errors import AuthError


def main():
    # Initialize auth client
    settings = Settings(jwt_secret="my-secret-key")
    client = AuthClient.from_settings(MemoryCredentialStore(), settings)

    # Register a member
    user = client.register("alice@example.com", "Alice", "secret123", "081-234-5678")
    print(f"Registered: {user.name} ({user.role.value})")

    # Login (token + carrier cookies)
    result = client.login("alice@example.com", "secret123")
    print(f"\nLogin successful!")
    print(f"Token: {result.token[:50]}...")
    for cookie in result.cookies:
        action = "clear" if cookie.is_deletion else f"set (max-age {cookie.max_age}s)"
        print(f"  {cookie.name}: {action}")

    # The browser sends the cookies back on the next request
    jar = {c.name: c.value for c in result.cookies if not c.is_deletion}
    principal = client.resolve_session(jar)
    print(f"\nResolved principal: {principal.name} ({principal.role.value})")

    # Authorize
    for capability in (Capability.authenticated(), Capability.admin_only()):
        decision = client.authorize(principal, capability)
        print(f"{capability.kind.value}: {decision.decision.value}")

    try:
        client.enforce(principal, Capability.admin_only())
    except AuthError as e:
        print(f"Admin route refused: {e.status_code} {e.public_message}")

    # Profile edits come back as a fresh token in the same cookie
    update = client.update_profile(jar, name="Alice Liddell")
    jar[update.cookie.name] = update.cookie.value
    print(f"Renamed; {update.cookie.name} now carries: {client.resolve_session(jar).name}")

    # Logout clears every carrier; the token itself is not revoked
    client.logout()
    print(f"\nLogged out; token still verifies: {client.resolve_session(jar) is not None}")

    client.shutdown()


if __name__ == "__main__":
    main()
