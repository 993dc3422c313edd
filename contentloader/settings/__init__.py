"""Settings package exports."""

from .loader import (
    AppConfig,
    HttpSettings,
    RuntimeSettings,
    load_config,
    load_default_headers,
)

__all__ = [
    "AppConfig",
    "HttpSettings",
    "RuntimeSettings",
    "load_config",
    "load_default_headers",
]
