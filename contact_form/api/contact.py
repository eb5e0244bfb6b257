"""Contact form API endpoint with validation, CORS, and abuse protections."""

from __future__ import annotations

import json
import os
from typing import Any

from config import ConfigError, get_config
from models import EndpointResponse
from services.guard import SubmissionGuard
from services.observability import get_logger
from services.rate_limiter import InMemoryTTLCache

# Survives between invocations only while the runtime keeps this process warm.
_RATE_LIMIT_CACHE: InMemoryTTLCache | None = None


def _shared_cache(max_entries: int) -> InMemoryTTLCache:
    global _RATE_LIMIT_CACHE
    if _RATE_LIMIT_CACHE is None:
        _RATE_LIMIT_CACHE = InMemoryTTLCache(max_entries=max_entries)
    return _RATE_LIMIT_CACHE


def reset_rate_limit_cache() -> None:
    """Drop all rate-limit counters (tests and process reloads)."""
    global _RATE_LIMIT_CACHE
    _RATE_LIMIT_CACHE = None


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    raw_body: str,
    guard: SubmissionGuard | None = None,
) -> EndpointResponse:
    """Process a contact request for serverless and unit test use."""
    if guard is None:
        try:
            config = get_config()
        except ConfigError as exc:
            get_logger().error("contact.misconfigured", error=str(exc))
            return EndpointResponse(
                status_code=500,
                headers=_fallback_headers(),
                body={"ok": False, "error": "misconfigured_server"},
            )
        guard = SubmissionGuard.from_config(
            config,
            cache=_shared_cache(config.rate_limit_max_keys),
        )

    return guard.handle(method=method, headers=headers, raw_body=raw_body)


def handler(request: Any) -> Any:
    """Vercel-style handler adapter."""
    method = str(getattr(request, "method", "GET"))
    headers = dict(getattr(request, "headers", {}) or {})

    body_value = getattr(request, "body", b"")
    if isinstance(body_value, (bytes, bytearray)):
        raw_body = body_value.decode("utf-8", errors="replace")
    else:
        raw_body = str(body_value or "")

    response = process_request(method=method, headers=headers, raw_body=raw_body)

    # Vercel python runtime accepts tuple (body, status, headers).
    body = "" if response.body is None else json.dumps(response.body)
    return body, response.status_code, response.headers


def _fallback_headers() -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    default_origin = os.environ.get("CONTACT_DEFAULT_ORIGIN", "").strip()
    if default_origin:
        headers["Access-Control-Allow-Origin"] = default_origin
    return headers
