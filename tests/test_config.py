"""Tests for config loading and validation."""

from __future__ import annotations

import pytest

from config import ConfigError, get_config, reset_config_cache
from models import EmailProvider

REQUIRED_ENV = {
    "CONTACT_DEFAULT_ORIGIN": "https://example.com",
    "CONTACT_FROM_EMAIL": "noreply@example.com",
    "CONTACT_TO_EMAIL": "contact@example.com",
    "RESEND_API_KEY": "re_test",
}

_OPTIONAL_ENV = (
    "EMAIL_PROVIDER",
    "ENABLE_DRY_RUN",
    "SMTP_HOST",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
    "RATE_LIMIT_MAX_REQUESTS",
    "CONTACT_NAME_MIN_LENGTH",
    "CONTACT_NAME_MAX_LENGTH",
    "OUTBOUND_TIMEOUT_SECONDS",
)


def _apply_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)


def test_get_config_parses_values(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.setenv(
        "CONTACT_ALLOWED_ORIGINS",
        "https://example.com, https://www.example.com",
    )
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "20")
    monkeypatch.setenv("CONTACT_MESSAGE_MAX_LENGTH", "2000")
    monkeypatch.setenv("OUTBOUND_TIMEOUT_SECONDS", "5.5")

    config = get_config(load_dotenv_file=False)

    assert config.allowed_origins == ("https://example.com", "https://www.example.com")
    assert config.rate_limit_max_requests == 20
    assert config.rate_limit_window_seconds == 600
    assert config.message_max_length == 2000
    assert config.outbound_timeout_seconds == 5.5
    assert config.email_provider == EmailProvider.RESEND
    assert config.honeypot_field == "website"
    assert config.challenge_enabled is True


def test_get_config_missing_required_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.delenv("CONTACT_TO_EMAIL", raising=False)

    with pytest.raises(ConfigError):
        get_config(load_dotenv_file=False)


def test_get_config_requires_resend_key_for_resend_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.delenv("RESEND_API_KEY", raising=False)

    with pytest.raises(ConfigError, match="RESEND_API_KEY"):
        get_config(load_dotenv_file=False)


def test_get_config_requires_smtp_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.setenv("EMAIL_PROVIDER", "smtp")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")

    with pytest.raises(ConfigError, match="SMTP_USERNAME"):
        get_config(load_dotenv_file=False)


def test_get_config_rejects_unknown_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.setenv("EMAIL_PROVIDER", "carrier-pigeon")

    with pytest.raises(ConfigError):
        get_config(load_dotenv_file=False)


def test_get_config_rejects_invalid_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.setenv("ENABLE_DRY_RUN", "sometimes")

    with pytest.raises(ConfigError):
        get_config(load_dotenv_file=False)


def test_get_config_rejects_inverted_name_bounds(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_config_cache()
    _apply_required_env(monkeypatch)
    monkeypatch.setenv("CONTACT_NAME_MIN_LENGTH", "10")
    monkeypatch.setenv("CONTACT_NAME_MAX_LENGTH", "5")

    with pytest.raises(ConfigError):
        get_config(load_dotenv_file=False)
