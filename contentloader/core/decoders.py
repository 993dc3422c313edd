"""Typed decoding of received text into loader content."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any, Callable, TypeVar

from bs4 import BeautifulSoup

from .errors import DecodeError

T = TypeVar("T")

Decoder = Callable[[str], T]


def text_decoder(text: str) -> str:
    return text


def json_decoder(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON: {exc}") from exc


def xml_decoder(text: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise DecodeError(f"Invalid XML: {exc}") from exc


def html_decoder(text: str) -> BeautifulSoup:
    # html.parser is lenient; only an empty document is rejected.
    if not text.strip():
        raise DecodeError("Empty HTML document")
    return BeautifulSoup(text, "html.parser")


DECODERS: dict[str, Callable[[str], Any]] = {
    "text": text_decoder,
    "json": json_decoder,
    "xml": xml_decoder,
    "html": html_decoder,
}


def get_decoder(name: str) -> Callable[[str], Any]:
    try:
        return DECODERS[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(DECODERS))
        raise ValueError(f"Unknown decoder '{name}', expected one of: {available}") from exc


__all__ = [
    "DECODERS",
    "Decoder",
    "get_decoder",
    "html_decoder",
    "json_decoder",
    "text_decoder",
    "xml_decoder",
]
