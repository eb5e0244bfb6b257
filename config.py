"""Centralized configuration loading for the contact form endpoint."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from models import EmailProvider


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


DEFAULT_TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


@dataclass(frozen=True)
class AppConfig:
    """Typed application configuration loaded from environment variables."""

    allowed_origins: tuple[str, ...]
    preview_origin_suffix: str | None
    default_origin: str
    max_content_length: int
    rate_limit_max_requests: int
    rate_limit_window_seconds: int
    rate_limit_max_keys: int
    name_min_length: int
    name_max_length: int
    email_max_length: int
    message_max_length: int
    max_links: int
    honeypot_field: str
    challenge_token_field: str
    challenge_enabled: bool
    turnstile_secret_key: str | None
    turnstile_verify_url: str
    deceive_on_challenge_failure: bool
    email_provider: EmailProvider
    resend_api_key: str | None
    contact_from_email: str
    contact_to_email: str
    smtp_host: str | None
    smtp_port: int
    smtp_username: str | None
    smtp_password: str | None
    smtp_use_ssl: bool
    outbound_timeout_seconds: float
    enable_dry_run: bool


_REQUIRED_ENV_VARS = (
    "CONTACT_DEFAULT_ORIGIN",
    "CONTACT_FROM_EMAIL",
    "CONTACT_TO_EMAIL",
)

_REQUIRED_SMTP_ENV_VARS = (
    "SMTP_HOST",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
)


def _get_required_env(name: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        raise ConfigError(f"Missing required environment variable: {name}")
    return raw.strip()


def _get_optional_env(name: str) -> str | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _parse_bool(name: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {raw!r}")


def _parse_int(name: str, raw: str, minimum: int | None = None, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc

    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be <= {maximum}, got {value}")
    return value


def _parse_float(name: str, raw: str, minimum: float | None = None) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid number value for {name}: {raw!r}") from exc

    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_csv(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return tuple(values)


def _env_int(name: str, default: int, minimum: int | None = None, maximum: int | None = None) -> int:
    raw = _get_optional_env(name)
    if raw is None:
        return default
    return _parse_int(name, raw, minimum=minimum, maximum=maximum)


def _env_bool(name: str, default: bool) -> bool:
    raw = _get_optional_env(name)
    if raw is None:
        return default
    return _parse_bool(name, raw)


def _parse_provider(raw: str) -> EmailProvider:
    try:
        return EmailProvider(raw.strip().lower())
    except ValueError as exc:
        raise ConfigError(
            f"Invalid EMAIL_PROVIDER: {raw!r}. Expected one of {sorted(p.value for p in EmailProvider)}"
        ) from exc


def _validate_required_envs() -> None:
    for name in _REQUIRED_ENV_VARS:
        _get_required_env(name)


@lru_cache(maxsize=1)
def get_config(load_dotenv_file: bool = True) -> AppConfig:
    """Load and cache app configuration."""
    if load_dotenv_file:
        load_dotenv()

    _validate_required_envs()

    email_provider = _parse_provider(os.environ.get("EMAIL_PROVIDER") or EmailProvider.RESEND.value)
    enable_dry_run = _env_bool("ENABLE_DRY_RUN", False)

    resend_api_key = _get_optional_env("RESEND_API_KEY")
    if email_provider == EmailProvider.RESEND and not enable_dry_run and resend_api_key is None:
        raise ConfigError("Missing required environment variable: RESEND_API_KEY")
    if email_provider == EmailProvider.SMTP and not enable_dry_run:
        for name in _REQUIRED_SMTP_ENV_VARS:
            _get_required_env(name)

    name_min_length = _env_int("CONTACT_NAME_MIN_LENGTH", 2, minimum=1)
    name_max_length = _env_int("CONTACT_NAME_MAX_LENGTH", 80, minimum=1)
    if name_min_length > name_max_length:
        raise ConfigError(
            "CONTACT_NAME_MIN_LENGTH must not exceed CONTACT_NAME_MAX_LENGTH, "
            f"got {name_min_length} > {name_max_length}"
        )

    timeout_raw = _get_optional_env("OUTBOUND_TIMEOUT_SECONDS")
    outbound_timeout_seconds = (
        _parse_float("OUTBOUND_TIMEOUT_SECONDS", timeout_raw, minimum=0.1) if timeout_raw else 8.0
    )

    return AppConfig(
        allowed_origins=_parse_csv(os.environ.get("CONTACT_ALLOWED_ORIGINS")),
        preview_origin_suffix=_get_optional_env("CONTACT_PREVIEW_ORIGIN_SUFFIX"),
        default_origin=_get_required_env("CONTACT_DEFAULT_ORIGIN"),
        max_content_length=_env_int("CONTACT_MAX_CONTENT_LENGTH", 10_000, minimum=1),
        rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 5, minimum=1),
        rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 600, minimum=1),
        rate_limit_max_keys=_env_int("RATE_LIMIT_MAX_KEYS", 10_000, minimum=1),
        name_min_length=name_min_length,
        name_max_length=name_max_length,
        email_max_length=_env_int("CONTACT_EMAIL_MAX_LENGTH", 120, minimum=6, maximum=254),
        message_max_length=_env_int("CONTACT_MESSAGE_MAX_LENGTH", 1000, minimum=1),
        max_links=_env_int("CONTACT_MAX_LINKS", 3, minimum=1),
        honeypot_field=os.environ.get("CONTACT_HONEYPOT_FIELD") or "website",
        challenge_token_field=os.environ.get("CONTACT_CHALLENGE_TOKEN_FIELD") or "challengeToken",
        challenge_enabled=_env_bool("CHALLENGE_ENABLED", True),
        turnstile_secret_key=_get_optional_env("TURNSTILE_SECRET_KEY"),
        turnstile_verify_url=os.environ.get("TURNSTILE_VERIFY_URL") or DEFAULT_TURNSTILE_VERIFY_URL,
        deceive_on_challenge_failure=_env_bool("DECEIVE_ON_CHALLENGE_FAILURE", False),
        email_provider=email_provider,
        resend_api_key=resend_api_key,
        contact_from_email=_get_required_env("CONTACT_FROM_EMAIL"),
        contact_to_email=_get_required_env("CONTACT_TO_EMAIL"),
        smtp_host=_get_optional_env("SMTP_HOST"),
        smtp_port=_env_int("SMTP_PORT", 587, minimum=1, maximum=65535),
        smtp_username=_get_optional_env("SMTP_USERNAME"),
        smtp_password=_get_optional_env("SMTP_PASSWORD"),
        smtp_use_ssl=_env_bool("SMTP_USE_SSL", False),
        outbound_timeout_seconds=outbound_timeout_seconds,
        enable_dry_run=enable_dry_run,
    )


def reset_config_cache() -> None:
    """Clear memoized configuration for tests and process reloads."""
    get_config.cache_clear()
