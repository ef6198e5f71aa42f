"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings

VALID_KEY = "k" * 32


def make(**overrides):
    values = {"secret_key": VALID_KEY, "database_url": "sqlite+aiosqlite:///:memory:"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        make(secret_key="too-short")


def test_placeholder_secret_key_rejected():
    with pytest.raises(ValidationError, match="placeholder"):
        make(secret_key="generate-with-openssl-rand-hex-32")


def test_unsupported_database_scheme_rejected():
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        make(database_url="mysql://localhost/store")


def test_postgres_url_accepted():
    assert make(database_url="postgresql+asyncpg://u:p@db/store").database_url.startswith("postgresql")


def test_admin_emails_normalized():
    settings = make(admin_emails=[" Owner@Example.com "])
    assert settings.admin_emails == ["owner@example.com"]


def test_comma_separated_list_accepted():
    settings = make(cors_origins="http://a.test, http://b.test")
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize("key", ["", "   ", "your-api-key-here"])
def test_blank_or_placeholder_api_keys_are_unset(key):
    settings = make(resend_api_key=key, openrouter_api_key=key)
    assert settings.resend_api_key is None
    assert settings.openrouter_api_key is None


def test_defaults():
    settings = make()
    assert settings.api_prefix == "/api"
    assert settings.batch_window_seconds == 300
    assert settings.analysis_max_attempts == 5
