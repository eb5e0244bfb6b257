"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from config import DEFAULT_TURNSTILE_VERIFY_URL, AppConfig
from models import EmailProvider


class FakeClock:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        allowed_origins=("https://example.com", "https://www.example.com"),
        preview_origin_suffix=".pages.dev",
        default_origin="https://example.com",
        max_content_length=10_000,
        rate_limit_max_requests=5,
        rate_limit_window_seconds=600,
        rate_limit_max_keys=100,
        name_min_length=2,
        name_max_length=80,
        email_max_length=120,
        message_max_length=1000,
        max_links=3,
        honeypot_field="website",
        challenge_token_field="challengeToken",
        challenge_enabled=True,
        turnstile_secret_key="turnstile_test",
        turnstile_verify_url=DEFAULT_TURNSTILE_VERIFY_URL,
        deceive_on_challenge_failure=False,
        email_provider=EmailProvider.RESEND,
        resend_api_key="re_test",
        contact_from_email="Site <noreply@example.com>",
        contact_to_email="contact@example.com",
        smtp_host=None,
        smtp_port=587,
        smtp_username=None,
        smtp_password=None,
        smtp_use_ssl=False,
        outbound_timeout_seconds=8.0,
        enable_dry_run=False,
    )
