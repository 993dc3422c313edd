"""Loader that fetches or posts content through an HTTP transport."""

from __future__ import annotations

import dataclasses
import json
import xml.etree.ElementTree as ET
from functools import partial
from typing import Any, Callable, TypeVar

from bs4.element import Tag

from ..utils.logging import get_logger
from .decoders import text_decoder
from .dispatch import LoadStrategy, NetworkStrategy
from .errors import DecodeError, FailureKind
from .loader import Loader
from .transport import RequestsTransport, Transport

_LOGGER = get_logger(__name__)

T = TypeVar("T")

CONTENT_TYPE_HEADER = "Content-Type"
XML_CONTENT_TYPE = "application/xml"
JSON_CONTENT_TYPE = "application/json"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_payload(payload: Any) -> tuple[str, str]:
    """Return ``(body, content_type)`` for an outbound payload.

    Markup is serialized to text, strings pass through untouched and anything
    else is encoded as compact JSON.
    """

    if isinstance(payload, Tag):
        return str(payload), XML_CONTENT_TYPE
    if isinstance(payload, ET.Element):
        return ET.tostring(payload, encoding="unicode"), XML_CONTENT_TYPE
    if isinstance(payload, str):
        return payload, DEFAULT_CONTENT_TYPE
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    return body, JSON_CONTENT_TYPE


class HttpLoader(Loader[T]):
    """Loads ``url`` over HTTP, or from local storage depending on ``strategy``.

    ``headers`` is copied onto a cleared transport header table at the start
    of every cycle, after :meth:`http_configure`, so caller headers always win
    over anything the hook sets. ``status_code`` keeps the last status seen across cycles.
    """

    def __init__(
        self,
        url: str | None = None,
        transport: Transport | None = None,
        *,
        strategy: LoadStrategy | None = None,
        decoder: Callable[[str], T] | None = None,
    ) -> None:
        super().__init__(url)
        self._transport: Transport = transport if transport is not None else RequestsTransport()
        self._headers: dict[str, str] = {}
        self._status_code: int | None = None
        self.strategy = strategy or NetworkStrategy()
        self._decoder: Callable[[str], Any] = decoder or text_decoder

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def headers(self) -> dict[str, str]:
        return self._headers

    @property
    def status_code(self) -> int | None:
        return self._status_code

    def send(self, payload: Any) -> None:
        """POST ``payload`` to ``url``, inferring ``Content-Type`` from its shape."""
        cycle = self._begin_cycle()
        try:
            body, content_type = encode_payload(payload)
        except (TypeError, ValueError) as exc:
            self._loader_fail(FailureKind.FORMAT, f"Unable to encode payload: {exc}", url=self.url)
            return
        if CONTENT_TYPE_HEADER not in self._headers:
            self._headers[CONTENT_TYPE_HEADER] = content_type

        self._prepare_transport(cycle)
        self._transport.set_post_data(body)
        self.issue(cycle, post=True)

    def http_configure(self) -> None:
        """Hook for subclasses to adjust the transport before headers are applied."""

    def issue(self, cycle: int, *, post: bool = False) -> None:
        if not self.is_current(cycle):
            return
        try:
            self._transport.request(post)
        except Exception as exc:
            if self.is_current(cycle):
                self._loader_fail(
                    FailureKind.SECURITY,
                    str(exc) or type(exc).__name__,
                    url=self.url,
                    error=type(exc).__name__,
                )

    def http_data(self, cycle: int, content: str) -> None:
        if not self._accepts(cycle, "data"):
            return
        try:
            decoded = self._decoder(content)
        except DecodeError as exc:
            self._loader_fail(FailureKind.FORMAT, str(exc), url=self.url)
            return
        except Exception as exc:
            self._loader_fail(
                FailureKind.FORMAT,
                str(exc) or type(exc).__name__,
                url=self.url,
                error=type(exc).__name__,
            )
            return
        self.content = decoded
        self._loader_complete()

    def http_error(self, cycle: int, message: str, **details: Any) -> None:
        if not self._accepts(cycle, "error"):
            return
        details.setdefault("url", self.url)
        self._loader_fail(FailureKind.IO, message, **details)

    def http_status(self, cycle: int, status: int) -> None:
        if not self._accepts(cycle, "status"):
            return
        self._status_code = status

    def decode_error(self, cycle: int, message: str, **details: Any) -> None:
        if not self._accepts(cycle, "decode"):
            return
        self._loader_fail(FailureKind.FORMAT, message, **details)

    def _loader_load(self) -> None:
        cycle = self.cycle
        self._prepare_transport(cycle)
        self._transport.set_post_data(None)
        self.strategy.load(self, cycle)

    def _loader_cancel(self) -> None:
        if self._transport.supports_cancel:
            self._transport.cancel()

    def _prepare_transport(self, cycle: int) -> None:
        self._transport.url = self.url
        self._transport.clear_headers()
        self.http_configure()
        for name, value in self._headers.items():
            self._transport.set_header(name, value)
        self._transport.on_data = partial(self.http_data, cycle)
        self._transport.on_error = partial(self.http_error, cycle)
        self._transport.on_status = partial(self.http_status, cycle)

    def _accepts(self, cycle: int, callback: str) -> bool:
        if self.is_current(cycle):
            return True
        _LOGGER.debug(
            "Ignoring stale %s callback",
            callback,
            extra={"event": "loader.stale", "cycle": cycle, "current": self.cycle},
        )
        return False


__all__ = [
    "CONTENT_TYPE_HEADER",
    "DEFAULT_CONTENT_TYPE",
    "HttpLoader",
    "JSON_CONTENT_TYPE",
    "XML_CONTENT_TYPE",
    "encode_payload",
]
