"""HTTP transport contract and its ``requests`` implementation."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Protocol

import requests

from ..utils.logging import get_logger

_LOGGER = get_logger(__name__)


class Transport(Protocol):
    """Callback-driven HTTP client handle owned by a single loader.

    The ``on_*`` callbacks are read when :meth:`request` is called and stay
    bound to that request. Reassigning them afterwards only affects later
    requests.
    """

    url: str | None
    on_data: Callable[[str], None] | None
    on_error: Callable[[str], None] | None
    on_status: Callable[[int], None] | None

    @property
    def supports_cancel(self) -> bool:
        """True when an issued request can be aborted mid-flight."""

    def set_header(self, name: str, value: str) -> None:
        ...

    def clear_headers(self) -> None:
        ...

    def set_post_data(self, data: str | bytes | None) -> None:
        ...

    def request(self, post: bool = False) -> None:
        """Issue the request; the outcome arrives through the current callbacks."""

    def cancel(self) -> None:
        ...


@dataclass(slots=True)
class TransportResponse:
    url: str
    status: int
    text: str
    elapsed: float


@dataclass(slots=True, frozen=True)
class _Callbacks:
    on_data: Callable[[str], None] | None
    on_error: Callable[[str], None] | None
    on_status: Callable[[int], None] | None

    def status(self, code: int) -> None:
        if self.on_status is not None:
            self.on_status(code)

    def data(self, text: str) -> None:
        if self.on_data is not None:
            self.on_data(text)

    def error(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)


class RequestsTransport:
    """:class:`Transport` backed by ``requests.Session``.

    With an event loop, requests run in the loop's default executor and the
    callbacks fire on the loop thread; the request can then be cancelled.
    Without a loop the request is performed inline and the callbacks fire
    before :meth:`request` returns.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.url: str | None = None
        self.on_data: Callable[[str], None] | None = None
        self.on_error: Callable[[str], None] | None = None
        self.on_status: Callable[[int], None] | None = None
        self._session = session or requests.Session()
        self._timeout = timeout
        self._loop = loop
        self._headers: dict[str, str] = {}
        self._post_data: str | bytes | None = None
        self._pending: asyncio.Future[TransportResponse] | None = None

    @property
    def supports_cancel(self) -> bool:
        return self._loop is not None

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def post_data(self) -> str | bytes | None:
        return self._post_data

    def set_header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def clear_headers(self) -> None:
        self._headers.clear()

    def set_post_data(self, data: str | bytes | None) -> None:
        self._post_data = data

    def request(self, post: bool = False) -> None:
        prepared = self._prepare(post)
        callbacks = _Callbacks(self.on_data, self.on_error, self.on_status)
        _LOGGER.debug(
            "Issuing %s %s",
            prepared.method,
            prepared.url,
            extra={"event": "transport.request", "async": self._loop is not None},
        )
        if self._loop is None:
            try:
                response = self._perform(prepared)
            except requests.RequestException as exc:
                callbacks.error(str(exc))
                return
            self._deliver(response, callbacks)
            return

        self.cancel()
        future = self._loop.run_in_executor(None, self._perform, prepared)
        self._pending = future
        future.add_done_callback(partial(self._on_done, callbacks))

    def cancel(self) -> None:
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            _LOGGER.debug("Cancelled pending request", extra={"event": "transport.cancel"})

    def _prepare(self, post: bool) -> requests.PreparedRequest:
        if not self.url:
            raise ValueError("Transport url is not set")
        data = self._post_data if post else None
        if isinstance(data, str):
            data = data.encode("utf-8")
        request = requests.Request(
            method="POST" if post else "GET",
            url=self.url,
            headers=dict(self._headers),
            data=data,
        )
        return self._session.prepare_request(request)

    def _perform(self, prepared: requests.PreparedRequest) -> TransportResponse:
        start_time = time.monotonic()
        response = self._session.send(prepared, timeout=self._timeout)
        return TransportResponse(
            url=response.url,
            status=response.status_code,
            text=response.text,
            elapsed=time.monotonic() - start_time,
        )

    def _on_done(self, callbacks: _Callbacks, future: asyncio.Future[TransportResponse]) -> None:
        if self._pending is future:
            self._pending = None
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            if not isinstance(exc, requests.RequestException):
                _LOGGER.warning("Unexpected transport error: %r", exc)
            callbacks.error(str(exc))
            return
        self._deliver(future.result(), callbacks)

    def _deliver(self, response: TransportResponse, callbacks: _Callbacks) -> None:
        _LOGGER.debug(
            "Received HTTP %s from %s in %.3fs",
            response.status,
            response.url,
            response.elapsed,
            extra={"event": "transport.response"},
        )
        callbacks.status(response.status)
        if response.status >= 400:
            callbacks.error(f"Http Error #{response.status}")
            return
        callbacks.data(response.text)


__all__ = ["RequestsTransport", "Transport", "TransportResponse"]
