"""
Password Reset Example - Request, deliver and redeem a single-use reset secret.

Runs with the development escape hatch, so the reset link is returned when
no mail transport is configured.
"""

from brew_auth import AuthClient
from brew_auth.adapters import MemoryCredentialStore
from brew_auth.config import Settings
from brew_auth.errors import InvalidOrExpiredTokenError
from brew_auth.observability import configure_logging


def main():
    configure_logging(service_name="reset-example", level="INFO")

    settings = Settings(jwt_secret="my-secret-key", expose_reset_secret=True)
    client = AuthClient.from_settings(MemoryCredentialStore(), settings)
    client.register("alice@example.com", "Alice", "secret123", "0812345678")

    # Unknown and known emails get the same answer
    print(client.request_reset("nobody@example.com").to_dict())
    result = client.request_reset("alice@example.com")
    print(result.to_dict())

    secret = result.dev_reset_link.split("token=", 1)[1]

    client.redeem_reset(secret, "new-password")
    print("\nPassword reset")

    try:
        client.redeem_reset(secret, "another-password")
    except InvalidOrExpiredTokenError as e:
        print(f"Second redemption refused: {e.public_message}")

    login = client.login("alice@example.com", "new-password")
    print(f"Logged in again as {login.user.name}")

    client.shutdown()


if __name__ == "__main__":
    main()
