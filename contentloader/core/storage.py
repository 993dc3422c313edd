"""Local filesystem and bundled-asset capabilities."""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Protocol


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    with path.open("r", encoding=encoding, newline="") as fp:
        return fp.read()


class FileSystem(Protocol):
    def exists(self, path: str) -> bool:
        ...

    def read_all_text(self, path: str) -> str:
        ...


class AssetStore(Protocol):
    def get_text(self, path: str) -> str:
        """Return the asset's text; raise ``FileNotFoundError`` when absent."""


class LocalFileSystem:
    """Reads paths relative to ``root`` (the working directory by default)."""

    def __init__(self, root: Path | None = None, *, encoding: str = "utf-8") -> None:
        self._root = root
        self._encoding = encoding

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read_all_text(self, path: str) -> str:
        return read_text(self._resolve(path), encoding=self._encoding)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if self._root is None or candidate.is_absolute():
            return candidate
        return self._root / candidate


class DirectoryAssets:
    """Asset store over a directory shipped next to the application."""

    def __init__(self, root: Path, *, encoding: str = "utf-8") -> None:
        self._root = root
        self._encoding = encoding

    def get_text(self, path: str) -> str:
        return read_text(self._root / path, encoding=self._encoding)


class PackageAssets:
    """Asset store over data files bundled inside an importable package."""

    def __init__(self, anchor: str, *, encoding: str = "utf-8") -> None:
        self._anchor = anchor
        self._encoding = encoding

    def get_text(self, path: str) -> str:
        resource = resources.files(self._anchor).joinpath(path)
        if not resource.is_file():
            raise FileNotFoundError(f"Asset not found: {self._anchor}/{path}")
        return resource.read_text(encoding=self._encoding)


__all__ = [
    "AssetStore",
    "DirectoryAssets",
    "FileSystem",
    "LocalFileSystem",
    "PackageAssets",
]
