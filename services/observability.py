"""JSON-lines logging for contact requests.

Each event is one JSON object tagged with the service and route so a request
can be followed from admission to dispatch by ``request_id``. Submitter text
(name, message) is never passed in; only outcomes and provider diagnostics.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_LOGGER_NAME = "contact_guard"
_ROUTE = "/api/contact"

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class LogContext:
    """Per-request values stamped on every event."""

    request_id: str | None = None
    client_ip: str | None = None
    origin: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def as_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            key: value
            for key, value in (
                ("request_id", self.request_id),
                ("client_ip", self.client_ip),
                ("origin", self.origin),
            )
            if value
        }
        fields.update(self.extras)
        return fields


class StructuredLogger:
    """Emit request events as sorted-key JSON lines."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(_LOGGER_NAME)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)
        self._logger.setLevel(logging.INFO)

    def info(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit("info", event, context=context, fields=fields)

    def warning(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit("warning", event, context=context, fields=fields)

    def error(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit("error", event, context=context, fields=fields)

    def _emit(
        self,
        level: str,
        event: str,
        *,
        context: LogContext | None,
        fields: dict[str, Any],
    ) -> None:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "service": _LOGGER_NAME,
            "route": _ROUTE,
            "level": level,
            "event": event,
        }
        if context is not None:
            payload.update(context.as_fields())
        payload.update(fields)
        self._logger.log(_LEVELS[level], json.dumps(payload, sort_keys=True, default=str))


_default_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _default_logger
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger
