"""Ordered loading of several loaders with a concurrency limit."""

from __future__ import annotations

from collections import deque
from typing import Any

from ..utils.logging import get_logger
from .errors import LoaderFailure
from .loader import Loader
from .signals import EventKind, LoaderEvent, Signal

_LOGGER = get_logger(__name__)

DEFAULT_MAX_LOADING = 8


class LoaderQueue:
    """Starts queued loaders in insertion order, at most ``max_loading`` at once.

    A failed or externally cancelled loader counts as finished; failures are
    collected in :attr:`failures` and do not stop the queue.
    """

    def __init__(self, max_loading: int = DEFAULT_MAX_LOADING) -> None:
        if max_loading < 1:
            raise ValueError("max_loading must be at least 1")
        self.max_loading = max_loading
        self.loading = False
        self.progress = 0.0
        self.loaded: Signal[LoaderEvent] = Signal()
        self.failures: list[tuple[Loader[Any], LoaderFailure]] = []
        self._loaders: list[Loader[Any]] = []
        self._pending: deque[Loader[Any]] = deque()
        self._active: list[Loader[Any]] = []
        self._finished = 0

    @property
    def size(self) -> int:
        return len(self._loaders)

    @property
    def active(self) -> list[Loader[Any]]:
        return list(self._active)

    def add(self, loader: Loader[Any]) -> None:
        if loader in self._loaders:
            return
        self._loaders.append(loader)
        if self.loading:
            self._pending.append(loader)
            self._continue()

    def remove(self, loader: Loader[Any]) -> None:
        if loader not in self._loaders:
            return
        self._loaders.remove(loader)
        if loader in self._pending:
            self._pending.remove(loader)
        if loader in self._active:
            self._active.remove(loader)
            loader.loaded.remove(self._on_loader_event)
            loader.cancel()
            self._continue()

    def load(self) -> None:
        if self.loading:
            return
        self.loading = True
        self.progress = 0.0
        self.failures = []
        self._finished = 0
        self._pending = deque(self._loaders)
        _LOGGER.debug("Queue started", extra={"event": "queue.start", "size": self.size})
        self._dispatch(EventKind.START)
        if not self._loaders:
            self._complete()
            return
        self._continue()

    def cancel(self) -> None:
        if not self.loading:
            return
        active, self._active = self._active, []
        self._pending.clear()
        for loader in active:
            loader.loaded.remove(self._on_loader_event)
            loader.cancel()
        self.loading = False
        self._dispatch(EventKind.CANCEL)

    def _continue(self) -> None:
        while self.loading and self._pending and len(self._active) < self.max_loading:
            loader = self._pending.popleft()
            self._active.append(loader)
            loader.loaded.add(self._on_loader_event)
            loader.load()

    def _on_loader_event(self, event: LoaderEvent) -> None:
        if event.kind not in (EventKind.COMPLETE, EventKind.FAIL, EventKind.CANCEL):
            return
        loader = event.target
        loader.loaded.remove(self._on_loader_event)
        if loader in self._active:
            self._active.remove(loader)
        if event.kind is EventKind.FAIL and event.failure is not None:
            self.failures.append((loader, event.failure))
        self._finished += 1
        total = self._finished + len(self._active) + len(self._pending)
        self.progress = self._finished / total if total else 1.0
        self._dispatch(EventKind.PROGRESS, progress=self.progress)
        if not self._active and not self._pending:
            self._complete()
            return
        self._continue()

    def _complete(self) -> None:
        if not self.loading:
            return
        self.loading = False
        self.progress = 1.0
        _LOGGER.debug(
            "Queue completed",
            extra={"event": "queue.complete", "failures": len(self.failures)},
        )
        self._dispatch(EventKind.COMPLETE)

    def _dispatch(self, kind: EventKind, **payload: Any) -> None:
        self.loaded.dispatch(LoaderEvent(kind=kind, target=self, **payload))


__all__ = ["DEFAULT_MAX_LOADING", "LoaderQueue"]
