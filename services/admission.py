"""Request admission checks, CORS headers, and client identification."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

from models import ContactError

ALLOWED_METHODS = ("POST", "OPTIONS")
DEFAULT_CLIENT_IP = "0.0.0.0"


class AdmissionError(ContactError):
    """Raised when a request fails method, origin, content-type, or size checks."""


@dataclass(frozen=True)
class AdmissionOptions:
    """Origin and size policy for inbound requests."""

    allowed_origins: tuple[str, ...]
    default_origin: str
    max_content_length: int
    preview_origin_suffix: str | None = None


def normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


def is_origin_allowed(origin: str, options: AdmissionOptions) -> bool:
    """Exact allow-list match, or an https origin under the preview suffix."""
    if not origin:
        return False
    if origin in options.allowed_origins:
        return True
    suffix = options.preview_origin_suffix
    if not suffix:
        return False

    parsed = urlparse(origin)
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    host = parsed.hostname.lower()
    suffix = suffix.lower()
    if not suffix.startswith("."):
        suffix = f".{suffix}"
    return host.endswith(suffix) and len(host) > len(suffix)


def cors_headers(origin: str, options: AdmissionOptions) -> dict[str, str]:
    """CORS headers echoing a validated origin, else the canonical one."""
    allow_origin = origin if is_origin_allowed(origin, options) else options.default_origin
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Vary": "Origin",
    }


def client_ip(headers: Mapping[str, str]) -> str:
    """Resolve the client address from proxy headers (lower-cased keys)."""
    cf_ip = headers.get("cf-connecting-ip", "").strip()
    if cf_ip:
        return cf_ip
    forwarded = headers.get("x-forwarded-for", "").split(",", 1)[0].strip()
    if forwarded:
        return forwarded
    real_ip = headers.get("x-real-ip", "").strip()
    return real_ip or DEFAULT_CLIENT_IP


def check_admission(
    *,
    method: str,
    headers: Mapping[str, str],
    body_size: int,
    options: AdmissionOptions,
) -> bool:
    """Run admission checks in order.

    Returns ``True`` when the request is a CORS preflight that should be
    answered with 204, ``False`` when it may proceed. Raises
    ``AdmissionError`` otherwise. ``headers`` must already be normalized.
    """
    normalized_method = method.upper()
    if normalized_method not in ALLOWED_METHODS:
        raise AdmissionError("Method Not Allowed", status_code=405)

    origin = headers.get("origin", "")
    if origin and not is_origin_allowed(origin, options):
        raise AdmissionError("Forbidden", status_code=403)

    if normalized_method == "OPTIONS":
        return True

    content_type = headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise AdmissionError("Expected JSON", status_code=415)

    declared = _declared_length(headers.get("content-length", ""))
    if max(declared, body_size) > options.max_content_length:
        raise AdmissionError("Payload Too Large", status_code=413)

    return False


def _declared_length(raw: str) -> int:
    try:
        return max(int(raw.strip()), 0)
    except ValueError:
        return 0
