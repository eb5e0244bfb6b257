"""HTML escaping for user-supplied text embedded in outbound email bodies."""

from __future__ import annotations

# Ampersand must be replaced first so later entities are not re-escaped.
_HTML_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def escape_for_html(text: str) -> str:
    """Replace the five HTML-significant characters with entities.

    Input that is already escaped is escaped again (``&amp;`` becomes
    ``&amp;amp;``).
    """
    escaped = text
    for raw, entity in _HTML_REPLACEMENTS:
        escaped = escaped.replace(raw, entity)
    return escaped


def message_to_html(text: str) -> str:
    """Escape message text, then convert line breaks to ``<br/>``."""
    escaped = escape_for_html(text)
    normalized = escaped.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.replace("\n", "<br/>")
