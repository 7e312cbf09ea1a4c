"""JSON logging for Warrity.

Log calls use a dotted event name as the message (``warranty.created``,
``request.completed``) and pass fields through ``extra={"extra_data": ...}``.
Each record becomes one JSON line::

    {"ts": "...", "level": "INFO", "event": "warranty.created",
     "logger": "warrity.warranties", "request_id": "...", "warranty_id": 3}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .warranty_status import format_timestamp

# Fields set by the formatter; event data cannot overwrite them.
RESERVED_FIELDS = frozenset({"ts", "level", "event", "logger", "request_id", "principal", "exception"})

# Server loggers that should share the JSON handler instead of their own.
SERVER_LOGGERS = ("uvicorn", "uvicorn.error")


def event_payload(record: logging.LogRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ts": format_timestamp(datetime.fromtimestamp(record.created, tz=timezone.utc)),
        "level": record.levelname,
        "event": record.getMessage(),
        "logger": record.name,
    }
    request_id = request_id_ctx_var.get()
    if request_id:
        payload["request_id"] = request_id
    principal = principal_ctx_var.get()
    if principal:
        payload["principal"] = principal
    extra = getattr(record, "extra_data", None)
    if isinstance(extra, Mapping):
        for key, value in extra.items():
            payload[f"data_{key}" if key in RESERVED_FIELDS else key] = value
    return payload


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = event_payload(record)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the JSON handler on the root logger.

    ``uvicorn.access`` is silenced because the request middleware already
    writes one ``request.completed`` line per request.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.root.setLevel(level)
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
    logging.getLogger("uvicorn.access").disabled = True
