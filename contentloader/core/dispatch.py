"""Runtime strategies deciding how an :class:`HttpLoader` fetches its url."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence

from ..utils.logging import get_logger
from .storage import AssetStore, FileSystem, LocalFileSystem

if TYPE_CHECKING:
    from .http_loader import HttpLoader

_LOGGER = get_logger(__name__)

DEFAULT_NETWORK_PREFIXES: tuple[str, ...] = ("http:", "https:")
DEFAULT_ASSET_PREFIX = "assets/"


class Scheduler(Protocol):
    """Anything with ``call_soon``; an asyncio event loop qualifies."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Any:
        ...


class LoadStrategy(ABC):
    name: str = "base"

    def __init__(self, *, network_prefixes: Sequence[str] = DEFAULT_NETWORK_PREFIXES) -> None:
        self.network_prefixes = tuple(network_prefixes)

    def is_network(self, url: str) -> bool:
        return url.startswith(self.network_prefixes)

    @abstractmethod
    def load(self, loader: HttpLoader[Any], cycle: int) -> None:
        """Start fetching ``loader.url`` for the given cycle."""


class NetworkStrategy(LoadStrategy):
    """Browser-like runtime: every url goes through the transport."""

    name = "network"

    def load(self, loader: HttpLoader[Any], cycle: int) -> None:
        loader.issue(cycle)


class FilesystemStrategy(LoadStrategy):
    """Native runtime: network urls use the transport, anything else is a local path."""

    name = "filesystem"

    def __init__(
        self,
        filesystem: FileSystem | None = None,
        *,
        network_prefixes: Sequence[str] = DEFAULT_NETWORK_PREFIXES,
    ) -> None:
        super().__init__(network_prefixes=network_prefixes)
        self.filesystem = filesystem or LocalFileSystem()

    def load(self, loader: HttpLoader[Any], cycle: int) -> None:
        url = loader.url or ""
        if self.is_network(url):
            loader.issue(cycle)
            return

        if not self.filesystem.exists(url):
            loader.http_error(cycle, f"Local file does not exist: {url}", path=url)
            return

        try:
            text = self.filesystem.read_all_text(url)
        except OSError as exc:
            loader.http_error(cycle, f"Unable to read local file {url}: {exc}", path=url)
            return
        except UnicodeDecodeError as exc:
            loader.decode_error(cycle, f"Local file {url} is not valid text: {exc}", path=url)
            return
        _LOGGER.debug("Read local file %s", url, extra={"event": "dispatch.file", "size": len(text)})
        loader.http_data(cycle, text)


class BundledAssetStrategy(LoadStrategy):
    """Packaged runtime: non-network urls resolve against an asset store.

    Both branches are deferred through ``scheduler`` so completion is never
    reported from inside ``load()``.
    """

    name = "assets"

    def __init__(
        self,
        assets: AssetStore,
        scheduler: Scheduler,
        *,
        prefix: str = DEFAULT_ASSET_PREFIX,
        network_prefixes: Sequence[str] = DEFAULT_NETWORK_PREFIXES,
    ) -> None:
        super().__init__(network_prefixes=network_prefixes)
        self.assets = assets
        self.scheduler = scheduler
        self.prefix = prefix

    def load(self, loader: HttpLoader[Any], cycle: int) -> None:
        url = loader.url or ""
        if self.is_network(url):
            self.scheduler.call_soon(loader.issue, cycle)
            return
        self.scheduler.call_soon(self._read_asset, loader, cycle, self.prefix + url)

    def _read_asset(self, loader: HttpLoader[Any], cycle: int, path: str) -> None:
        if not loader.is_current(cycle):
            return
        try:
            text = self.assets.get_text(path)
        except OSError as exc:
            loader.http_error(cycle, f"Asset not available: {path} ({exc})", path=path)
            return
        loader.http_data(cycle, text)


__all__ = [
    "BundledAssetStrategy",
    "DEFAULT_ASSET_PREFIX",
    "DEFAULT_NETWORK_PREFIXES",
    "FilesystemStrategy",
    "LoadStrategy",
    "NetworkStrategy",
    "Scheduler",
]
