"""Logging helpers for contentpipe.

The library only creates module loggers under the ``contentpipe`` namespace.
Handlers are attached solely by :func:`configure_logging`, which applications
call explicitly.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .settings import settings

LOGGER_NAME = "contentpipe"


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    Structured payloads can be attached with
    ``logger.debug("msg", extra={"contentpipe_data": {...}})`` and appear under
    the ``data`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "contentpipe_data", None)
        if data is not None:
            payload["data"] = data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    level: int | str | None = None,
    *,
    json_format: bool | None = None,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """Attach a handler to the ``contentpipe`` logger.

    Args:
        level: Log level for the package logger.  Defaults to
            ``settings.log_level``.
        json_format: Use :class:`JSONFormatter` instead of the plain text
            format.  Defaults to ``settings.log_json``.
        handler: Custom handler.  Defaults to a ``StreamHandler`` writing to stderr.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = settings.log_level.upper()
    if json_format is None:
        json_format = settings.log_json

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if handler is None:
        handler = logging.StreamHandler()

    if json_format:
        handler.setFormatter(JSONFormatter())
    elif handler.formatter is None:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    if handler not in logger.handlers:
        logger.addHandler(handler)
    return logger
