"""Utility exports."""

from .logging import JsonFormatter, configure_logging, get_logger, record_extras

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    "record_extras",
]
