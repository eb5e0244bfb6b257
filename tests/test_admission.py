"""Tests for request admission and CORS helpers."""

from __future__ import annotations

import pytest

from services.admission import (
    AdmissionError,
    AdmissionOptions,
    check_admission,
    client_ip,
    cors_headers,
    is_origin_allowed,
    normalize_headers,
)

OPTIONS = AdmissionOptions(
    allowed_origins=("https://example.com", "http://localhost:5173"),
    default_origin="https://example.com",
    max_content_length=100,
    preview_origin_suffix=".pages.dev",
)


def _headers(**extra: str) -> dict[str, str]:
    base = {"Content-Type": "application/json", "Origin": "https://example.com"}
    base.update(extra)
    return normalize_headers(base)


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH", "HEAD"])
def test_non_post_methods_are_rejected(method: str) -> None:
    with pytest.raises(AdmissionError) as exc_info:
        check_admission(method=method, headers=_headers(), body_size=0, options=OPTIONS)

    assert exc_info.value.status_code == 405


def test_method_check_precedes_origin_check() -> None:
    headers = normalize_headers({"Origin": "https://evil.example.net"})

    with pytest.raises(AdmissionError) as exc_info:
        check_admission(method="GET", headers=headers, body_size=0, options=OPTIONS)

    assert exc_info.value.status_code == 405


def test_options_preflight_short_circuits() -> None:
    headers = normalize_headers({"Origin": "https://example.com"})

    assert check_admission(method="OPTIONS", headers=headers, body_size=0, options=OPTIONS) is True


def test_unknown_origin_is_forbidden() -> None:
    with pytest.raises(AdmissionError) as exc_info:
        check_admission(
            method="POST",
            headers=_headers(Origin="https://evil.example.net"),
            body_size=10,
            options=OPTIONS,
        )

    assert exc_info.value.status_code == 403


def test_missing_origin_is_admitted() -> None:
    headers = normalize_headers({"Content-Type": "application/json"})

    assert check_admission(method="POST", headers=headers, body_size=10, options=OPTIONS) is False


def test_wrong_content_type_is_rejected() -> None:
    with pytest.raises(AdmissionError) as exc_info:
        check_admission(
            method="POST",
            headers=_headers(**{"Content-Type": "text/plain"}),
            body_size=10,
            options=OPTIONS,
        )

    assert exc_info.value.status_code == 415


def test_content_type_with_charset_is_accepted() -> None:
    headers = _headers(**{"Content-Type": "application/json; charset=utf-8"})

    assert check_admission(method="POST", headers=headers, body_size=10, options=OPTIONS) is False


def test_declared_content_length_over_limit_is_rejected() -> None:
    with pytest.raises(AdmissionError) as exc_info:
        check_admission(
            method="POST",
            headers=_headers(**{"Content-Length": "101"}),
            body_size=10,
            options=OPTIONS,
        )

    assert exc_info.value.status_code == 413


def test_actual_body_size_over_limit_is_rejected_without_header() -> None:
    with pytest.raises(AdmissionError) as exc_info:
        check_admission(method="POST", headers=_headers(), body_size=500, options=OPTIONS)

    assert exc_info.value.status_code == 413


@pytest.mark.parametrize(
    ("origin", "expected"),
    [
        ("https://example.com", True),
        ("http://localhost:5173", True),
        ("https://feature-x.mysite.pages.dev", True),
        ("http://feature-x.mysite.pages.dev", False),
        ("https://pages.dev", False),
        ("https://evilpages.dev", False),
        ("https://example.com.evil.net", False),
        ("", False),
    ],
)
def test_origin_allow_list_and_preview_suffix(origin: str, expected: bool) -> None:
    assert is_origin_allowed(origin, OPTIONS) is expected


def test_cors_headers_echo_validated_origin() -> None:
    headers = cors_headers("http://localhost:5173", OPTIONS)

    assert headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_cors_headers_fall_back_to_default_origin() -> None:
    assert cors_headers("", OPTIONS)["Access-Control-Allow-Origin"] == "https://example.com"
    assert (
        cors_headers("https://evil.example.net", OPTIONS)["Access-Control-Allow-Origin"]
        == "https://example.com"
    )


def test_client_ip_prefers_cloudflare_header() -> None:
    headers = normalize_headers(
        {"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2, 3.3.3.3"}
    )

    assert client_ip(headers) == "1.1.1.1"


def test_client_ip_uses_first_forwarded_entry() -> None:
    headers = normalize_headers({"X-Forwarded-For": "2.2.2.2, 3.3.3.3"})

    assert client_ip(headers) == "2.2.2.2"


def test_client_ip_defaults_when_absent() -> None:
    assert client_ip({}) == "0.0.0.0"
