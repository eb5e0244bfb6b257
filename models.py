"""Core typed models used across the contact submission pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EmailProvider(StrEnum):
    """Outbound email transport selection."""

    RESEND = "resend"
    SMTP = "smtp"


class ValidationOutcome(StrEnum):
    """Result classification for payload validation."""

    OK = "ok"
    HONEYPOT = "honeypot"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Submission:
    """Contact form submission decoded from a single request body."""

    name: str
    email: str
    message: str
    honeypot: str | None = None
    challenge_token: str | None = None


@dataclass(frozen=True)
class RateLimitEntry:
    """Hit counter for one client key inside a fixed window."""

    key: str
    count: int
    window_expiry: float


@dataclass(frozen=True)
class OutboundMessage:
    """Sanitized email ready for dispatch."""

    from_email: str
    to_email: str
    subject: str
    html: str
    text: str
    reply_to: str | None = None


@dataclass(frozen=True)
class Rejection:
    """Terminal outcome of a failed pipeline stage."""

    status_code: int
    reason: str


@dataclass(frozen=True)
class EndpointResponse:
    """HTTP-like response shape used by tests and serverless adapters."""

    status_code: int
    headers: dict[str, str]
    body: dict[str, Any] | None = field(default=None)


class ContactError(RuntimeError):
    """Base class for terminal pipeline failures mapped to an HTTP status."""

    status_code = 500

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        if status_code is not None:
            self.status_code = status_code

    def to_rejection(self) -> Rejection:
        return Rejection(status_code=self.status_code, reason=self.reason)
