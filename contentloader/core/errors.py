"""Failure taxonomy shared by loaders and transports."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class FailureKind(str, Enum):
    IO = "io"
    SECURITY = "security"
    FORMAT = "format"


@dataclass(slots=True, frozen=True)
class LoaderFailure:
    """Structured reason carried by a ``FAIL`` event."""

    kind: FailureKind
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        base = f"{self.kind.value}: {self.message}"
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(dict(self.details), ensure_ascii=False)
        except TypeError:
            detail_repr = str(dict(self.details))
        return f"{base} | details: {detail_repr}"


class LoaderUsageError(RuntimeError):
    """Raised immediately when a loader is driven incorrectly, e.g. without a url."""


class LoaderFailed(RuntimeError):
    """Exception form of a :class:`LoaderFailure` for callers awaiting a cycle."""

    def __init__(self, failure: LoaderFailure) -> None:
        super().__init__(str(failure))
        self.failure = failure

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind


class DecodeError(ValueError):
    """Raised by decoders when received text cannot be turned into content."""


__all__ = [
    "DecodeError",
    "FailureKind",
    "LoaderFailed",
    "LoaderFailure",
    "LoaderUsageError",
]
