"""Typed loader events and the signal channel that publishes them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from ..utils.logging import get_logger
from .errors import LoaderFailure

_LOGGER = get_logger(__name__)

E = TypeVar("E")


class EventKind(str, Enum):
    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"
    FAIL = "fail"
    CANCEL = "cancel"


@dataclass(slots=True, frozen=True)
class LoaderEvent:
    """Payload dispatched on a loader's ``loaded`` signal."""

    kind: EventKind
    target: Any
    failure: LoaderFailure | None = None
    progress: float | None = None


class Signal(Generic[E]):
    """Synchronous publish/subscribe channel with no replay.

    Handlers run in subscription order. A handler that raises is logged and
    does not prevent later handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable[[E], Any]] = []

    def add(self, handler: Callable[[E], Any]) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove(self, handler: Callable[[E], Any]) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def remove_all(self) -> None:
        self._handlers.clear()

    @property
    def num_handlers(self) -> int:
        return len(self._handlers)

    def dispatch(self, event: E) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                _LOGGER.exception("Signal handler %r failed for %r", handler, event)


__all__ = ["EventKind", "LoaderEvent", "Signal"]
