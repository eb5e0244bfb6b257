"""JSON schemas for inbound contact payloads."""

from __future__ import annotations

_TEXT_FIELD: dict[str, object] = {"type": ["string", "null"]}


def submission_schema(*, challenge_token_field: str) -> dict[str, object]:
    """Shape check for the request body; content rules live in the validator."""
    return {
        "type": "object",
        "properties": {
            "name": _TEXT_FIELD,
            "email": _TEXT_FIELD,
            "message": _TEXT_FIELD,
            challenge_token_field: _TEXT_FIELD,
        },
    }
