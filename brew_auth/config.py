"""
Configuration - Environment-driven settings (BREW_AUTH_* variables).

Loaded with pydantic-settings. Defaults are safe for local development only;
`validate_production_settings` refuses them anywhere else.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """All auth configuration. Set via BREW_AUTH_* env vars."""

    model_config = SettingsConfigDict(env_prefix="BREW_AUTH_", case_sensitive=False)

    environment: Literal["development", "test", "production"] = "development"
    service_name: str = "brew-auth"
    log_level: str = "INFO"

    # Session tokens
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, repr=False)
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "brew-auth"
    session_ttl_seconds: int = 60 * 60 * 24 * 7  # 7 days
    revoke_on_password_change: bool = False

    # Cookies
    cookie_same_site: Literal["lax", "strict"] = "lax"

    # Passwords
    min_password_length: int = 6
    bcrypt_rounds: int = 10

    # Password reset
    reset_ttl_seconds: int = 60 * 60  # 1 hour
    reset_url_base: str = "http://localhost:3000/auth/reset-password"
    expose_reset_secret: bool = False  # Development escape hatch only

    # Outbound mail
    dispatch_timeout_seconds: float = 5.0
    mail_from: str = "no-reply@localhost"
    mail_api_url: Optional[str] = None
    mail_api_key: Optional[str] = Field(default=None, repr=False)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = Field(default=None, repr=False)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure development-only settings never reach other environments."""
        if self.environment != "development" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError(
                "BREW_AUTH_JWT_SECRET must be set to a secure value outside "
                "development. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        if self.is_production and self.expose_reset_secret:
            raise ValueError("BREW_AUTH_EXPOSE_RESET_SECRET is not allowed in production")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
