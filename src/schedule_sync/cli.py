from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

import orjson

from .logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schedule Sync command line interface.")
    parser.add_argument("--log-level", default=None, help="Override SCHEDULE_SYNC_LOG_LEVEL.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    api_parser = subparsers.add_parser("api", help="Start the FastAPI server exposing the sync operations.")
    api_parser.add_argument("--host", default="127.0.0.1")
    api_parser.add_argument("--port", type=int, default=8000)

    preview_parser = subparsers.add_parser("preview", help="Print the pending answer changes for a user.")
    preview_parser.add_argument("--user-id", required=True)
    preview_parser.add_argument("--exclude-event-id", default=None)

    apply_parser = subparsers.add_parser("apply", help="Apply the pending answer changes for one event.")
    apply_parser.add_argument("--user-id", required=True)
    apply_parser.add_argument("--event-id", required=True)

    return parser


def _print_json(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    logging.getLogger(__name__).info("Schedule Sync CLI starting: %s", args.command)

    if args.command == "api":
        from .services.http import run_local_server

        run_local_server(host=args.host, port=args.port)
        return 0

    from .api import call_as_user

    if args.command == "preview":
        result = call_as_user("preview_sync", args.user_id, {"exclude_event_id": args.exclude_event_id})
        _print_json(result)
        return 1 if result.get("failed") else 0
    if args.command == "apply":
        result = call_as_user("apply_sync", args.user_id, {"event_id": args.event_id})
        _print_json(result)
        return 0 if result.get("success") else 1

    parser.print_help()  # pragma: no cover - argparse enforces choices
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
