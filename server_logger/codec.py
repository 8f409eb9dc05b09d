"""Line codec — one LogEntry per JSON line, keys sorted for stable output."""

import json
from datetime import datetime, timezone

from server_logger.models import LogEntry, LogType

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

REQUIRED_FIELDS = ("group", "id", "message", "timestamp", "type")


class DecodeError(ValueError):
    """Raised when a line cannot be turned back into a LogEntry."""


def format_timestamp(ts: datetime) -> str:
    """Render *ts* as UTC ISO-8601 with microseconds and a Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string. Naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def entry_to_dict(entry: LogEntry) -> dict:
    return {
        "group": entry.group,
        "id": entry.id,
        "message": entry.message,
        "timestamp": format_timestamp(entry.timestamp),
        "type": entry.type.value,
    }


def encode_entry(entry: LogEntry) -> str:
    """Serialize an entry to a single line (no trailing newline)."""
    return json.dumps(
        entry_to_dict(entry),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def decode_entry(line) -> LogEntry:
    """Parse one line back into a LogEntry. Raises DecodeError on any problem."""
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Line is not valid UTF-8: {e}") from e

    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object, got {type(data).__name__}")

    missing = [k for k in REQUIRED_FIELDS if k not in data]
    if missing:
        raise DecodeError(f"Missing field(s): {', '.join(missing)}")

    for key in ("group", "id", "message", "timestamp"):
        if not isinstance(data[key], str):
            raise DecodeError(f"Field {key!r} must be a string")

    try:
        log_type = LogType(data["type"])
    except ValueError as e:
        raise DecodeError(f"Unknown log type: {data['type']!r}") from e

    try:
        timestamp = parse_timestamp(data["timestamp"])
    except ValueError as e:
        raise DecodeError(f"Invalid timestamp: {data['timestamp']!r}") from e

    return LogEntry(
        group=data["group"],
        type=log_type,
        message=data["message"],
        id=data["id"],
        timestamp=timestamp,
    )
