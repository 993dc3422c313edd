"""Core loader primitives."""

from .decoders import get_decoder, html_decoder, json_decoder, text_decoder, xml_decoder
from .dispatch import (
    BundledAssetStrategy,
    FilesystemStrategy,
    LoadStrategy,
    NetworkStrategy,
    Scheduler,
)
from .errors import DecodeError, FailureKind, LoaderFailed, LoaderFailure, LoaderUsageError
from .futures import wait_for
from .http_loader import HttpLoader, encode_payload
from .loader import Loader
from .queue import LoaderQueue
from .signals import EventKind, LoaderEvent, Signal
from .storage import DirectoryAssets, LocalFileSystem, PackageAssets
from .transport import RequestsTransport, Transport

__all__ = [
    "BundledAssetStrategy",
    "DecodeError",
    "DirectoryAssets",
    "EventKind",
    "FailureKind",
    "FilesystemStrategy",
    "HttpLoader",
    "LoadStrategy",
    "Loader",
    "LoaderEvent",
    "LoaderFailed",
    "LoaderFailure",
    "LoaderQueue",
    "LoaderUsageError",
    "LocalFileSystem",
    "NetworkStrategy",
    "PackageAssets",
    "RequestsTransport",
    "Scheduler",
    "Signal",
    "Transport",
    "encode_payload",
    "get_decoder",
    "html_decoder",
    "json_decoder",
    "text_decoder",
    "wait_for",
]
