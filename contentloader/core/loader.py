"""Abstract loader lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from ..utils.logging import get_logger
from .errors import FailureKind, LoaderFailure, LoaderUsageError
from .signals import EventKind, LoaderEvent, Signal

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class Loader(ABC, Generic[T]):
    """Base state machine: ``Idle -> Loading -> Completed | Failed | Cancelled``.

    Every ``load`` starts a new cycle identified by an increasing generation
    number. Subclasses tag their asynchronous callbacks with the generation
    returned by :meth:`_begin_cycle` and drop them unless :meth:`is_current`
    still holds, so a superseded request can never resolve a newer one.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url
        self.loading = False
        self.content: T | None = None
        self.progress = 0.0
        self.loaded: Signal[LoaderEvent] = Signal()
        self._generation = 0

    @property
    def cycle(self) -> int:
        return self._generation

    def is_current(self, cycle: int) -> bool:
        return self.loading and cycle == self._generation

    def load(self) -> None:
        self._begin_cycle()
        self._loader_load()

    def cancel(self) -> None:
        if not self.loading:
            return
        self._loader_cancel()
        self.loading = False
        self.content = None
        self.progress = 0.0
        _LOGGER.debug(
            "Loader cancelled",
            extra={"event": "loader.cancel", "url": self.url, "cycle": self._generation},
        )
        self._dispatch(EventKind.CANCEL)

    def _begin_cycle(self) -> int:
        if self.loading:
            self.cancel()
        if self.url is None:
            raise LoaderUsageError("No url defined for loader")
        self._generation += 1
        self.loading = True
        self.progress = 0.0
        _LOGGER.debug(
            "Loader started",
            extra={"event": "loader.start", "url": self.url, "cycle": self._generation},
        )
        self._dispatch(EventKind.START)
        return self._generation

    @abstractmethod
    def _loader_load(self) -> None:
        """Start the transport work for the current cycle."""

    @abstractmethod
    def _loader_cancel(self) -> None:
        """Abort in-flight transport work; must tolerate already finished work."""

    def _loader_complete(self) -> None:
        if not self.loading:
            return
        self.loading = False
        self.progress = 1.0
        _LOGGER.debug(
            "Loader completed",
            extra={"event": "loader.complete", "url": self.url, "cycle": self._generation},
        )
        self._dispatch(EventKind.COMPLETE)

    def _loader_fail(
        self,
        kind: FailureKind,
        message: str,
        **details: Any,
    ) -> None:
        if not self.loading:
            return
        self.loading = False
        failure = LoaderFailure(kind=kind, message=message, details=details)
        _LOGGER.warning(
            "Loader failed: %s",
            failure,
            extra={"event": "loader.fail", "url": self.url, "cycle": self._generation},
        )
        self._dispatch(EventKind.FAIL, failure=failure)

    def _dispatch(self, kind: EventKind, **payload: Any) -> None:
        self.loaded.dispatch(LoaderEvent(kind=kind, target=self, **payload))


__all__ = ["Loader"]
