"""Output formatters for the inspector — text, JSON lines, colorized (ANSI)."""

import json
from typing import Callable

from server_logger.codec import encode_entry, format_timestamp
from server_logger.models import GroupInfo, LogEntry, LogType

# ANSI color codes
COLORS = {
    LogType.DEBUG: "\033[36m",     # cyan
    LogType.INFO: "\033[32m",      # green
    LogType.WARNING: "\033[33m",   # yellow
    LogType.ERROR: "\033[31m",     # red
    LogType.CRITICAL: "\033[35m",  # magenta
    LogType.AUDIT: "\033[34m",     # blue
}
RESET = "\033[0m"


def format_text(entry: LogEntry) -> str:
    return f"[{format_timestamp(entry.timestamp)}] [{entry.group}] [{entry.type.value.upper()}] {entry.message}"


def format_json(entry: LogEntry) -> str:
    """Same line the store keeps on disk, so output pipes straight into jq."""
    return encode_entry(entry)


def format_color(entry: LogEntry) -> str:
    color = COLORS.get(entry.type, "")
    level = entry.type.value.upper()
    return f"[{format_timestamp(entry.timestamp)}] [{entry.group}] [{color}{level}{RESET}] {entry.message}"


def get_formatter(output_format: str = "text", color: bool = False) -> Callable[[LogEntry], str]:
    """Factory that returns the right formatter based on args."""
    if output_format == "json":
        return format_json
    if color:
        return format_color
    return format_text


def format_group(info: GroupInfo, output_format: str = "text") -> str:
    last = format_timestamp(info.last_log_date) if info.last_log_date else None
    if output_format == "json":
        return json.dumps(
            {"name": info.name, "entry_count": info.entry_count, "last_log_date": last},
            sort_keys=True,
        )
    return f"  {info.name}  ({info.entry_count} entries, last: {last or '-'})"
