"""
Unit tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from brew_auth.config import Settings, DEFAULT_JWT_SECRET


def test_development_defaults():
    settings = Settings()

    assert settings.environment == "development"
    assert settings.jwt_secret == DEFAULT_JWT_SECRET
    assert settings.session_ttl_seconds == 7 * 24 * 3600
    assert settings.reset_ttl_seconds == 3600
    assert not settings.cookie_secure
    assert not settings.revoke_on_password_change


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("BREW_AUTH_SESSION_TTL_SECONDS", "60")
    monkeypatch.setenv("BREW_AUTH_COOKIE_SAME_SITE", "strict")

    settings = Settings()

    assert settings.session_ttl_seconds == 60
    assert settings.cookie_same_site == "strict"


def test_default_secret_refused_outside_development():
    with pytest.raises(ValidationError):
        Settings(environment="production")
    with pytest.raises(ValidationError):
        Settings(environment="test")


def test_production_with_secret():
    settings = Settings(environment="production", jwt_secret="s3cr3t")

    assert settings.is_production
    assert settings.cookie_secure


def test_reset_secret_exposure_refused_in_production():
    with pytest.raises(ValidationError):
        Settings(environment="production", jwt_secret="s3cr3t", expose_reset_secret=True)


def test_secret_not_in_repr():
    assert "s3cr3t" not in repr(Settings(jwt_secret="s3cr3t"))
