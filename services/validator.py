"""Payload parsing and ordered content checks for contact submissions."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from jsonschema import ValidationError as SchemaValidationError
from jsonschema import validate

from models import ContactError, Rejection, Submission, ValidationOutcome
from services.schemas import submission_schema

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LINK_PATTERN = re.compile(r"https?://", re.IGNORECASE)


class ValidationError(ContactError):
    """Raised when a submission body cannot be decoded into a Submission."""

    status_code = 400


@dataclass(frozen=True)
class ValidationOptions:
    """Thresholds and field names applied to every submission."""

    name_min_length: int = 2
    name_max_length: int = 80
    email_max_length: int = 120
    message_max_length: int = 1000
    max_links: int = 3
    honeypot_field: str = "website"
    challenge_token_field: str = "challengeToken"


@dataclass(frozen=True)
class ValidationResult:
    """Validator verdict; ``rejection`` is set only for ``REJECTED``."""

    outcome: ValidationOutcome
    rejection: Rejection | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == ValidationOutcome.OK


_OK = ValidationResult(outcome=ValidationOutcome.OK)
_HONEYPOT = ValidationResult(outcome=ValidationOutcome.HONEYPOT)


def parse_submission(raw_body: str, options: ValidationOptions) -> Submission:
    """Decode a JSON request body into a Submission."""
    if not raw_body.strip():
        raise ValidationError("Invalid JSON")
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid JSON") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON")

    honeypot = _optional_text(payload.get(options.honeypot_field))
    # A filled decoy field must reach the honeypot check whatever else is sent.
    if not (honeypot and honeypot.strip()):
        try:
            validate(
                instance=payload,
                schema=submission_schema(challenge_token_field=options.challenge_token_field),
            )
        except SchemaValidationError as exc:
            raise ValidationError("Invalid input") from exc

    return Submission(
        name=_text(payload.get("name")),
        email=_text(payload.get("email")),
        message=_text(payload.get("message")),
        honeypot=honeypot,
        challenge_token=_optional_text(payload.get(options.challenge_token_field)),
    )


def validate_submission(submission: Submission, options: ValidationOptions) -> ValidationResult:
    """Apply honeypot, presence, length, email, and link checks in that order."""
    if submission.honeypot and submission.honeypot.strip():
        return _HONEYPOT

    name = submission.name.strip()
    email = submission.email.strip()
    message = submission.message.strip()

    if not name or not email or not message:
        return _reject("Invalid input")

    if len(name) < options.name_min_length:
        return _reject("Name too short")
    if len(name) > options.name_max_length:
        return _reject("Name too long")
    if len(email) > options.email_max_length:
        return _reject("Email too long")
    if len(message) > options.message_max_length:
        return _reject("Message too long")

    if not is_valid_email(email):
        return _reject("Invalid email")

    if count_links(message) >= options.max_links:
        return _reject("Too many links")

    return _OK


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_PATTERN.match(email))


def count_links(text: str) -> int:
    """Count ``http://`` and ``https://`` occurrences, ignoring case."""
    return len(LINK_PATTERN.findall(text))


def _reject(reason: str) -> ValidationResult:
    return ValidationResult(
        outcome=ValidationOutcome.REJECTED,
        rejection=Rejection(status_code=400, reason=reason),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
