"""Command-line interface for fetching and posting content."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import tomllib
import xml.etree.ElementTree as ET
from typing import Any, Callable, Sequence

from ..core.decoders import DECODERS, get_decoder
from ..core.errors import LoaderFailed
from ..core.futures import wait_for
from ..factory import create_loader
from ..settings import AppConfig, load_config
from ..settings.loader import RUNTIME_NAMES
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

_NO_PAYLOAD = object()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=not args.log_plain,
        stream=sys.stderr,
    )

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="contentloader", description="contentloader CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    fetch_parser = subparsers.add_parser("fetch", help="Load a url and print its content")
    fetch_parser.add_argument("url", help="http(s) url, local path or asset path")
    fetch_parser.add_argument(
        "--runtime",
        choices=RUNTIME_NAMES,
        default=None,
        help="Override the configured runtime",
    )
    fetch_parser.add_argument(
        "--header",
        dest="headers",
        action="append",
        type=_parse_header,
        default=[],
        metavar="NAME=VALUE",
        help="Extra request header; may be repeated",
    )
    fetch_parser.add_argument(
        "--decode",
        choices=sorted(DECODERS),
        default="text",
        help="How to decode the received content",
    )
    payload_group = fetch_parser.add_mutually_exclusive_group()
    payload_group.add_argument("--data", default=None, help="POST this text as-is")
    payload_group.add_argument(
        "--json",
        dest="json_payload",
        type=_parse_json,
        default=None,
        help="POST this JSON document",
    )
    fetch_parser.set_defaults(handler=_handle_fetch)

    return parser


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{value}'")
    return name.strip(), header_value.strip()


def _parse_json(value: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"Invalid JSON payload: {exc}") from exc


def _handle_fetch(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, tomllib.TOMLDecodeError) as exc:
        LOGGER.error("Unable to load configuration: %s", exc, extra={"event": "cli.config_error"})
        return 2

    payload: Any = _NO_PAYLOAD
    if args.data is not None:
        payload = args.data
    elif args.json_payload is not None:
        payload = args.json_payload

    try:
        content = asyncio.run(
            _fetch(
                args.url,
                config=config,
                runtime=args.runtime,
                decoder=get_decoder(args.decode),
                headers=dict(args.headers),
                payload=payload,
            )
        )
    except LoaderFailed as exc:
        LOGGER.error(
            "Fetch failed: %s",
            exc,
            extra={"event": "cli.fetch_failed", "kind": exc.kind.value, "url": args.url},
        )
        return 1
    except ValueError as exc:
        LOGGER.error("Invalid runtime configuration: %s", exc, extra={"event": "cli.config_error"})
        return 2

    sys.stdout.write(_render(content))
    sys.stdout.write("\n")
    return 0


async def _fetch(
    url: str,
    *,
    config: AppConfig,
    runtime: str | None,
    decoder: Callable[[str], Any],
    headers: dict[str, str],
    payload: Any,
) -> Any:
    loop = asyncio.get_running_loop()
    loader = create_loader(url, config=config, runtime=runtime, loop=loop, decoder=decoder)
    loader.headers.update(headers)
    result = wait_for(loader, loop=loop)
    if payload is _NO_PAYLOAD:
        loader.load()
    else:
        loader.send(payload)
    content = await result
    LOGGER.info(
        "Fetched %s",
        url,
        extra={"event": "cli.fetched", "status": loader.status_code},
    )
    return content


def _render(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, ET.Element):
        return ET.tostring(content, encoding="unicode")
    if isinstance(content, (dict, list, int, float, bool)):
        return json.dumps(content, ensure_ascii=False, indent=2)
    return str(content)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
