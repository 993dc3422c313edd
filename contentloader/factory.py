"""Build configured loaders for a named runtime."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

from .core.dispatch import (
    BundledAssetStrategy,
    FilesystemStrategy,
    LoadStrategy,
    NetworkStrategy,
    Scheduler,
)
from .core.http_loader import HttpLoader
from .core.storage import AssetStore, DirectoryAssets, LocalFileSystem, PackageAssets
from .core.transport import RequestsTransport, Transport
from .settings import AppConfig, RuntimeSettings, load_config

StrategyBuilder = Callable[[RuntimeSettings, "Scheduler | None"], LoadStrategy]


def _network(settings: RuntimeSettings, scheduler: Scheduler | None) -> LoadStrategy:
    return NetworkStrategy(network_prefixes=settings.network_prefixes)


def _filesystem(settings: RuntimeSettings, scheduler: Scheduler | None) -> LoadStrategy:
    return FilesystemStrategy(
        LocalFileSystem(settings.local_root),
        network_prefixes=settings.network_prefixes,
    )


def _assets(settings: RuntimeSettings, scheduler: Scheduler | None) -> LoadStrategy:
    if scheduler is None:
        raise ValueError("The assets runtime requires an event loop to defer completion")
    store: AssetStore
    if settings.asset_root is not None:
        store = DirectoryAssets(settings.asset_root)
    elif settings.asset_package:
        store = PackageAssets(settings.asset_package)
    else:
        raise ValueError("The assets runtime needs runtime.asset_root or runtime.asset_package")
    return BundledAssetStrategy(
        store,
        scheduler,
        prefix=settings.asset_prefix,
        network_prefixes=settings.network_prefixes,
    )


class StrategyFactory:
    """Registry-backed factory for load strategies."""

    def __init__(self, builders: Mapping[str, StrategyBuilder]) -> None:
        self._builders = {key.lower(): value for key, value in builders.items()}

    def create(self, settings: RuntimeSettings, scheduler: Scheduler | None = None) -> LoadStrategy:
        key = settings.name.lower()
        try:
            builder = self._builders[key]
        except KeyError as exc:
            raise ValueError(f"Unsupported runtime: {settings.name}") from exc
        return builder(settings, scheduler)


DEFAULT_FACTORY = StrategyFactory(
    {
        "network": _network,
        "filesystem": _filesystem,
        "assets": _assets,
    }
)


def create_loader(
    url: str | None = None,
    *,
    config: AppConfig | None = None,
    runtime: str | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
    decoder: Callable[[str], Any] | None = None,
    transport: Transport | None = None,
    factory: StrategyFactory = DEFAULT_FACTORY,
) -> HttpLoader[Any]:
    """Return an :class:`HttpLoader` wired for the configured runtime.

    ``runtime`` overrides ``config.runtime.name``. Configured default headers
    are copied into the loader's header table.
    """

    config = config or load_config()
    runtime_settings = config.runtime
    if runtime is not None:
        runtime_settings = RuntimeSettings(
            name=runtime,
            local_root=runtime_settings.local_root,
            asset_root=runtime_settings.asset_root,
            asset_package=runtime_settings.asset_package,
            asset_prefix=runtime_settings.asset_prefix,
            network_prefixes=runtime_settings.network_prefixes,
        )

    strategy = factory.create(runtime_settings, loop)
    if transport is None:
        transport = RequestsTransport(timeout=config.http.timeout, loop=loop)
    loader: HttpLoader[Any] = HttpLoader(url, transport, strategy=strategy, decoder=decoder)
    loader.headers.update(config.http.headers)
    return loader


__all__ = ["DEFAULT_FACTORY", "StrategyFactory", "create_loader"]
