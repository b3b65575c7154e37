"""Command line interface for the civicmap ingest pipeline."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .config import load_config
from .database import create_storage
from .pipeline import error_response
from .runtime import create_pipeline

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Turn civic announcements into GeoJSON")
    parser.add_argument("--config", type=Path, help="Path to an explicit configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Run the pipeline for one announcement")
    ingest.add_argument("text", nargs="?", help="Announcement text (read from stdin when omitted)")
    ingest.add_argument("--file", type=Path, help="Read the announcement text from this file")
    ingest.add_argument("--source", help="Source label stored with the message")

    show = subparsers.add_parser("show", help="Print a stored message as JSON")
    show.add_argument("message_id")

    listing = subparsers.add_parser("list", help="List recently stored messages")
    listing.add_argument("--limit", type=int, default=25, help="Maximum number of messages to list")
    return parser


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _read_text(args: argparse.Namespace) -> str:
    if args.file:
        return args.file.read_text(encoding="utf8")
    if args.text:
        return args.text
    return sys.stdin.read()


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    config = load_config(args.config)

    if args.command == "ingest":
        resources = create_pipeline(config)
        try:
            message = resources.pipeline.run(_read_text(args), source=args.source or config.ingest.default_source)
        except Exception as exc:
            status, body = error_response(exc)
            LOGGER.error("Ingest failed with status %s: %s", status, exc)
            _print_json(body)
            return 1
        finally:
            resources.close()
        _print_json(message.to_dict())
        return 0

    storage = create_storage(config.storage.database_url, echo=config.storage.echo_sql)
    try:
        if args.command == "show":
            message = storage.get_message(args.message_id)
            if message is None:
                LOGGER.error("Message %s not found", args.message_id)
                return 1
            payload = message.to_dict()
            payload["stage"] = message.stage
            payload["error"] = message.error
            _print_json(payload)
            return 0
        if args.command == "list":
            for message in storage.list_messages(limit=args.limit):
                first_line = message.text.strip().splitlines()[0] if message.text.strip() else ""
                created = message.created_at.isoformat(timespec="seconds") if message.created_at else "-"
                print(f"{message.id}  {message.stage or '-':<16} {created}  {first_line[:60]}")
            return 0
    finally:
        storage.dispose()
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
