"""Server-side verification of bot-challenge tokens (Turnstile siteverify)."""

from __future__ import annotations

from typing import Protocol

import requests

from config import DEFAULT_TURNSTILE_VERIFY_URL
from models import ContactError
from services.observability import get_logger


class ChallengeError(ContactError):
    """Raised when a challenge token is missing or rejected."""

    status_code = 403


class ChallengeVerifier(Protocol):
    def verify(self, token: str, client_ip: str) -> bool: ...


class TurnstileVerifier:
    """Single-attempt siteverify client; every failure mode reads as ``False``."""

    def __init__(
        self,
        secret: str | None,
        *,
        verify_url: str = DEFAULT_TURNSTILE_VERIFY_URL,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._secret = secret
        self._verify_url = verify_url
        self._timeout_seconds = timeout_seconds

    def verify(self, token: str, client_ip: str) -> bool:
        if not self._secret or not token:
            return False

        try:
            response = requests.post(
                self._verify_url,
                data={
                    "secret": self._secret,
                    "response": token,
                    "remoteip": client_ip,
                },
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            get_logger().warning(
                "challenge.verify_error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return False

        if not isinstance(payload, dict):
            return False
        if payload.get("success") is not True:
            error_codes = payload.get("error-codes")
            if error_codes:
                get_logger().info("challenge.rejected", error_codes=error_codes)
            return False
        return True
