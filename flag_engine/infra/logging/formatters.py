"""JSON Lines formatter with trace correlation."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

# Attributes every LogRecord carries; anything else on a record is an extra
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def _trace_fields() -> dict[str, str]:
    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return {}
    return {"trace_id": format(ctx.trace_id, "032x"), "span_id": format(ctx.span_id, "016x")}


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Output always has ``timestamp`` (UTC, millisecond precision, ``Z``
    suffix), ``level``, ``logger`` and ``message``. Static fields, the active
    OpenTelemetry ids and any ``extra=`` / log-context fields follow. Static
    fields never overwrite the core keys and extras never overwrite either.

    Example:
        ```json
        {"timestamp": "2026-01-01T00:00:00.123Z", "level": "INFO", "logger": "flag_engine.features.featureflags.service", "message": "Global state updated", "service": "feature-flag-engine", "request_id": "5f0c...", "key": "new_dashboard"}
        ```
    """

    def __init__(self, static: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in (*self.static.items(), *_trace_fields().items()):
            data.setdefault(key, value)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                data.setdefault(key, value)

        return json.dumps(data, ensure_ascii=False, default=str)
