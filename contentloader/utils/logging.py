"""Logging setup shared by the library and the command line."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the values attached to ``record`` through ``extra=``."""
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object.

    Extras become top-level keys next to ``timestamp``, ``level``, ``logger``
    and ``message``. Values that JSON cannot represent are passed through
    ``str``.
    """

    default_msec_format = "%s.%03dZ"

    def __init__(self, *, ensure_ascii: bool = False) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_extras(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=self.ensure_ascii, default=str)


def configure_logging(
    *,
    level: int = logging.INFO,
    structured: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Set the root level and install a JSON or plain formatter.

    A stream handler on ``stream`` (stdout by default) is added when the root
    logger has none. Existing handlers keep their formatter unless
    ``structured`` is given explicitly.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        root.addHandler(logging.StreamHandler(stream or sys.stdout))
        structured = bool(structured)
    elif structured is None:
        return

    formatter = JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger", "record_extras"]
