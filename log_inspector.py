"""CLI log inspector — list groups, query a group, or write an entry."""

import argparse
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime

from server_logger.config import load_config
from server_logger.formatter import format_group, get_formatter
from server_logger.models import LogType
from server_logger.store import LogStore


def parse_date(value: str) -> datetime:
    """Parse YYYY-MM-DD or an ISO-8601 date-time for --start / --end."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD[THH:MM[:SS]]") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-inspector",
        description="Inspect and write grouped server logs",
    )
    parser.add_argument("--log-dir", default=None,
                        help="Base log directory (default: SERVER_LOG_DIR or ./server_logs)")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--groups", action="store_true", help="List all log groups")
    action.add_argument("--query", metavar="GROUP", help="Show entries of a group")
    action.add_argument("--write", metavar="GROUP", help="Write one entry to a group")

    parser.add_argument("--start", help="Only entries at or after this date")
    parser.add_argument("--end", help="Only entries on or before this calendar day")
    parser.add_argument("--limit", type=int, default=100,
                        help="Max entries to show, negative for all (default: 100)")
    parser.add_argument("--ascending", action="store_true", help="Oldest entries first")
    parser.add_argument("--output", choices=["text", "json"], default="text",
                        help="Output format (default: text)")
    parser.add_argument("--color", action="store_true", help="Colorize output by log type (ANSI)")

    parser.add_argument("--type", choices=[t.value for t in LogType], default=LogType.INFO.value,
                        help="Log type for --write (default: info)")
    parser.add_argument("--message", help="Message for --write")
    return parser


def run(args) -> int:
    config = load_config(args.config)
    if args.log_dir:
        config = replace(config, log_dir=args.log_dir)
    store = LogStore(config)

    if args.groups:
        groups = store.list_groups()
        if not groups:
            print("No log groups found.")
            return 0
        for info in groups:
            print(format_group(info, args.output))
        return 0

    if args.write:
        if args.message is None:
            print("Error: --write requires --message", file=sys.stderr)
            return 1
        entry = store.write(args.write, args.type, args.message)
        if entry is None:
            print(f"Error: failed to write to group '{args.write}'", file=sys.stderr)
            return 1
        print(entry.id)
        return 0

    try:
        start = parse_date(args.start) if args.start else None
        end = parse_date(args.end) if args.end else None
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    entries = store.query(args.query, start_date=start, end_date=end,
                          limit=args.limit, ascending=args.ascending)
    if not entries:
        print(f"No entries found for group '{args.query}'.")
        return 0
    formatter = get_formatter(output_format=args.output, color=args.color)
    for entry in entries:
        print(formatter(entry))
    return 0


def main(argv=None):
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s [server-logger] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    try:
        main()
    except BrokenPipeError:
        sys.exit(0)
