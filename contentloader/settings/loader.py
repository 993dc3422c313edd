"""Helpers for loading configuration and static settings."""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_NAME = "contentloader.toml"
CONFIG_ENV_VAR = "CONTENTLOADER_CONFIG"
DEFAULT_HEADERS_PATH = Path(__file__).with_name("default_headers.json")

RUNTIME_NAMES = ("network", "filesystem", "assets")
_DEFAULT_NETWORK_PREFIXES = ("http:", "https:")


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 10.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RuntimeSettings:
    name: str = "network"
    local_root: Path | None = None
    asset_root: Path | None = None
    asset_package: str | None = None
    asset_prefix: str = "assets/"
    network_prefixes: tuple[str, ...] = _DEFAULT_NETWORK_PREFIXES

    def __post_init__(self) -> None:
        self.name = self.name.lower()
        if self.name not in RUNTIME_NAMES:
            expected = ", ".join(RUNTIME_NAMES)
            raise ValueError(f"Unknown runtime '{self.name}', expected one of: {expected}")


@dataclass(slots=True)
class AppConfig:
    http: HttpSettings = field(default_factory=HttpSettings)
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)
    source: Path | None = None


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    """Return the config path and whether it must exist."""
    if explicit:
        return Path(explicit), True
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value), True
    return Path.cwd() / DEFAULT_CONFIG_NAME, False


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _to_path(value: str | None, *, base: Path) -> Path | None:
    if not value:
        return None
    candidate = Path(value)
    return candidate if candidate.is_absolute() else base / candidate


def _build_http(section: dict[str, Any]) -> HttpSettings:
    headers = load_default_headers()
    headers.update({str(k): str(v) for k, v in section.get("headers", {}).items()})
    return HttpSettings(
        timeout=float(section.get("timeout", 10)),
        headers=headers,
    )


def _build_runtime(section: dict[str, Any], *, base: Path) -> RuntimeSettings:
    prefixes = section.get("network_prefixes")
    return RuntimeSettings(
        name=str(section.get("name", "network")),
        local_root=_to_path(section.get("local_root"), base=base),
        asset_root=_to_path(section.get("asset_root"), base=base),
        asset_package=section.get("asset_package"),
        asset_prefix=str(section.get("asset_prefix", "assets/")),
        network_prefixes=tuple(str(p) for p in prefixes)
        if prefixes is not None
        else _DEFAULT_NETWORK_PREFIXES,
    )


def load_config(config_path: str | os.PathLike[str] | None = None) -> AppConfig:
    path, required = _config_path(config_path)
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {path}")
        return AppConfig(http=_build_http({}))

    data = _load_toml(path)
    base = path.resolve().parent
    return AppConfig(
        http=_build_http(data.get("http", {})),
        runtime=_build_runtime(data.get("runtime", {}), base=base),
        source=path,
    )


def load_default_headers() -> dict[str, str]:
    if not DEFAULT_HEADERS_PATH.exists():
        return {}
    with DEFAULT_HEADERS_PATH.open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    return {str(key): str(value) for key, value in data.items()}
