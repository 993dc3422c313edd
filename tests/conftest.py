"""Shared fakes for loader tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from contentloader.core.signals import EventKind, LoaderEvent


class FakeTransport:
    """In-memory transport that records calls and replays callbacks on demand."""

    def __init__(
        self,
        *,
        supports_cancel: bool = True,
        raise_on_request: Exception | None = None,
    ) -> None:
        self.url: str | None = None
        self.on_data: Callable[[str], None] | None = None
        self.on_error: Callable[[str], None] | None = None
        self.on_status: Callable[[int], None] | None = None
        self.supports_cancel = supports_cancel
        self.raise_on_request = raise_on_request
        self.headers: dict[str, str] = {}
        self.post_data: Any = None
        self.requests: list[dict[str, Any]] = []
        self.cancelled = 0

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def clear_headers(self) -> None:
        self.headers.clear()

    def set_post_data(self, data: Any) -> None:
        self.post_data = data

    def request(self, post: bool = False) -> None:
        if self.raise_on_request is not None:
            raise self.raise_on_request
        self.requests.append(
            {
                "post": post,
                "url": self.url,
                "body": self.post_data,
                "headers": dict(self.headers),
                "callbacks": (self.on_data, self.on_error, self.on_status),
            }
        )

    def cancel(self) -> None:
        self.cancelled += 1

    def respond(self, text: str, *, status: int = 200, index: int = -1) -> None:
        on_data, _, on_status = self.requests[index]["callbacks"]
        on_status(status)
        on_data(text)

    def fail(self, message: str, *, index: int = -1) -> None:
        _, on_error, _ = self.requests[index]["callbacks"]
        on_error(message)


class FakeFileSystem:
    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})

    def exists(self, path: str) -> bool:
        return path in self.files

    def read_all_text(self, path: str) -> str:
        return self.files[path]


class FakeAssets:
    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.reads: list[str] = []

    def get_text(self, path: str) -> str:
        self.reads.append(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None


class ManualScheduler:
    """``call_soon`` implementation that runs callbacks only when told to."""

    def __init__(self) -> None:
        self.calls: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self.calls.append((callback, args))

    def run_pending(self) -> int:
        calls, self.calls = self.calls, []
        for callback, args in calls:
            callback(*args)
        return len(calls)


class EventRecorder:
    def __init__(self) -> None:
        self.events: list[LoaderEvent] = []

    def __call__(self, event: LoaderEvent) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]

    def failures(self) -> list[Any]:
        return [event.failure for event in self.events if event.kind is EventKind.FAIL]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
