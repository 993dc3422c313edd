"""Tests for the requests-backed transport."""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import pytest
import requests

from contentloader.core.errors import FailureKind, LoaderFailed
from contentloader.core.futures import wait_for
from contentloader.core.http_loader import HttpLoader
from contentloader.core.signals import EventKind
from contentloader.core.transport import RequestsTransport

from conftest import EventRecorder

URL = "http://example.com/data"


class StubSession(requests.Session):
    """Session whose ``send`` never touches the network."""

    def __init__(
        self,
        *,
        status: int = 200,
        body: bytes = b"ok",
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        super().__init__()
        self.status = status
        self.body = body
        self.error = error
        self.gate = gate
        self.sent: list[tuple[requests.PreparedRequest, dict[str, Any]]] = []

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.sent.append((request, kwargs))
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        response = requests.Response()
        response.status_code = self.status
        response._content = self.body
        response.url = request.url
        response.encoding = "utf-8"
        response.request = request
        return response


def _record(transport: RequestsTransport) -> list[tuple[str, Any]]:
    calls: list[tuple[str, Any]] = []
    transport.on_status = lambda code: calls.append(("status", code))
    transport.on_data = lambda text: calls.append(("data", text))
    transport.on_error = lambda message: calls.append(("error", message))
    return calls


def test_sync_request_delivers_status_then_data() -> None:
    session = StubSession(body=b"hello")
    transport = RequestsTransport(session=session, timeout=5)
    transport.url = URL
    transport.set_header("X-Trace", "1")
    calls = _record(transport)

    transport.request()

    assert calls == [("status", 200), ("data", "hello")]
    prepared, kwargs = session.sent[0]
    assert prepared.method == "GET"
    assert prepared.headers["X-Trace"] == "1"
    assert prepared.body is None
    assert kwargs["timeout"] == 5
    assert transport.supports_cancel is False


def test_post_sends_encoded_body() -> None:
    session = StubSession()
    transport = RequestsTransport(session=session)
    transport.url = URL
    transport.set_post_data('{"a":1}')
    _record(transport)

    transport.request(post=True)

    prepared, _ = session.sent[0]
    assert prepared.method == "POST"
    assert prepared.body == b'{"a":1}'


def test_error_status_reports_error() -> None:
    transport = RequestsTransport(session=StubSession(status=404, body=b"missing"))
    transport.url = URL
    calls = _record(transport)

    transport.request()

    assert calls == [("status", 404), ("error", "Http Error #404")]


def test_connection_error_reports_error() -> None:
    transport = RequestsTransport(session=StubSession(error=requests.ConnectionError("refused")))
    transport.url = URL
    calls = _record(transport)

    transport.request()

    assert calls == [("error", "refused")]


def test_invalid_url_raises_synchronously() -> None:
    session = StubSession()
    transport = RequestsTransport(session=session)
    transport.url = "local/file.txt"

    with pytest.raises(requests.exceptions.MissingSchema):
        transport.request()
    assert session.sent == []


def test_loader_classifies_invalid_url_as_security(recorder: EventRecorder) -> None:
    loader = HttpLoader("local/file.txt", RequestsTransport(session=StubSession()))
    loader.loaded.add(recorder)

    loader.load()

    assert recorder.kinds == [EventKind.START, EventKind.FAIL]
    assert recorder.failures()[0].kind is FailureKind.SECURITY


def test_loader_with_sync_transport(recorder: EventRecorder) -> None:
    loader = HttpLoader(URL, RequestsTransport(session=StubSession(status=201, body=b"created")))
    loader.loaded.add(recorder)

    loader.send({"a": 1})

    assert loader.content == "created"
    assert loader.status_code == 201
    assert recorder.kinds == [EventKind.START, EventKind.COMPLETE]


def test_loader_http_error_status_fails_with_io(recorder: EventRecorder) -> None:
    loader = HttpLoader(URL, RequestsTransport(session=StubSession(status=500)))
    loader.loaded.add(recorder)

    loader.load()

    failure = recorder.failures()[0]
    assert failure.kind is FailureKind.IO
    assert failure.message == "Http Error #500"
    assert loader.status_code == 500


def test_async_request_delivers_on_loop_thread() -> None:
    async def scenario() -> tuple[str, int, list[int], bool]:
        loop = asyncio.get_running_loop()
        transport = RequestsTransport(session=StubSession(body=b"async body"), loop=loop)
        transport.url = URL
        result: asyncio.Future[str] = loop.create_future()
        threads: list[int] = []

        def on_data(text: str) -> None:
            threads.append(threading.get_ident())
            result.set_result(text)

        transport.on_data = on_data
        transport.request()
        done_early = result.done()
        text = await asyncio.wait_for(result, timeout=5)
        return text, threading.get_ident(), threads, done_early

    text, loop_thread, threads, done_early = asyncio.run(scenario())

    assert text == "async body"
    assert done_early is False
    assert threads == [loop_thread]


def test_async_cancel_drops_callbacks() -> None:
    async def scenario() -> tuple[list[tuple[str, Any]], bool]:
        loop = asyncio.get_running_loop()
        gate = threading.Event()
        transport = RequestsTransport(session=StubSession(gate=gate), loop=loop)
        transport.url = URL
        calls = _record(transport)
        supports_cancel = transport.supports_cancel

        transport.request()
        transport.cancel()
        gate.set()
        await asyncio.sleep(0.1)
        return calls, supports_cancel

    calls, supports_cancel = asyncio.run(scenario())

    assert supports_cancel is True
    assert calls == []


def test_wait_for_resolves_with_content() -> None:
    async def scenario() -> tuple[Any, bytes | None]:
        loop = asyncio.get_running_loop()
        session = StubSession(body=b'{"ok":true}')
        loader = HttpLoader(URL, RequestsTransport(session=session, loop=loop))
        result = wait_for(loader)
        loader.send({"a": 1})
        content = await asyncio.wait_for(result, timeout=5)
        return content, session.sent[0][0].body

    content, body = asyncio.run(scenario())

    assert content == '{"ok":true}'
    assert body == b'{"a":1}'


def test_wait_for_raises_loader_failed() -> None:
    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        session = StubSession(error=requests.ConnectionError("down"))
        loader = HttpLoader(URL, RequestsTransport(session=session, loop=loop))
        result = wait_for(loader)
        loader.load()
        await asyncio.wait_for(result, timeout=5)

    with pytest.raises(LoaderFailed) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.kind is FailureKind.IO


class ControlledLoop:
    """Event loop stand-in whose executor jobs finish only when told to.

    Finishing a job resolves its future, but the future's done callbacks stay
    queued on a real (idle) asyncio loop until :meth:`drain` runs it.
    """

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self.jobs: list[tuple[asyncio.Future[Any], Any, tuple[Any, ...]]] = []

    def run_in_executor(self, executor: Any, func: Any, *args: Any) -> asyncio.Future[Any]:
        future = self.loop.create_future()
        self.jobs.append((future, func, args))
        return future

    def finish(self, index: int) -> None:
        future, func, args = self.jobs[index]
        future.set_result(func(*args))

    def drain(self) -> None:
        self.loop.run_until_complete(asyncio.sleep(0))

    def close(self) -> None:
        self.loop.close()


@pytest.fixture
def controlled_loop():
    loop = ControlledLoop()
    yield loop
    loop.close()


def test_callbacks_are_bound_when_request_is_issued(controlled_loop: ControlledLoop) -> None:
    transport = RequestsTransport(session=StubSession(body=b"first"), loop=controlled_loop)  # type: ignore[arg-type]
    transport.url = URL
    first = _record(transport)

    transport.request()
    second = _record(transport)
    controlled_loop.finish(0)
    controlled_loop.drain()

    assert first == [("status", 200), ("data", "first")]
    assert second == []


def test_finished_response_of_superseded_cycle_is_dropped(
    controlled_loop: ControlledLoop, recorder: EventRecorder
) -> None:
    session = StubSession(body=b"stale")
    loader = HttpLoader(URL, RequestsTransport(session=session, loop=controlled_loop))  # type: ignore[arg-type]
    loader.loaded.add(recorder)

    loader.load()
    controlled_loop.finish(0)
    loader.load()
    controlled_loop.drain()

    assert loader.loading is True
    assert loader.content is None
    assert recorder.kinds == [EventKind.START, EventKind.CANCEL, EventKind.START]

    session.body = b"fresh"
    controlled_loop.finish(1)
    controlled_loop.drain()

    assert loader.content == "fresh"
    assert recorder.kinds == [EventKind.START, EventKind.CANCEL, EventKind.START, EventKind.COMPLETE]


def test_headers_are_reset_between_loader_cycles() -> None:
    session = StubSession()
    loader = HttpLoader(URL, RequestsTransport(session=session))
    loader.headers["X-Token"] = "secret"

    loader.load()
    del loader.headers["X-Token"]
    loader.load()

    assert session.sent[0][0].headers["X-Token"] == "secret"
    assert "X-Token" not in session.sent[1][0].headers
