"""asyncio bridge for callback-driven loaders."""

from __future__ import annotations

import asyncio
from typing import Any

from .errors import LoaderFailed
from .loader import Loader
from .signals import EventKind, LoaderEvent


def wait_for(
    loader: Loader[Any],
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Future[Any]:
    """Return a future resolved by the loader's next terminal event.

    Call it before ``load()``/``send()``: loaders backed by a synchronous
    transport may finish before those calls return.
    """

    target_loop = loop or asyncio.get_running_loop()
    future: asyncio.Future[Any] = target_loop.create_future()

    def _on_event(event: LoaderEvent) -> None:
        if event.kind in (EventKind.START, EventKind.PROGRESS):
            return
        loader.loaded.remove(_on_event)
        if future.done():
            return
        if event.kind is EventKind.COMPLETE:
            future.set_result(loader.content)
        elif event.kind is EventKind.FAIL and event.failure is not None:
            future.set_exception(LoaderFailed(event.failure))
        else:
            future.cancel()

    loader.loaded.add(_on_event)
    return future


__all__ = ["wait_for"]
