"""Log entry, log type, and group summary models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class LogType(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    AUDIT = "audit"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass(frozen=True)
class LogEntry:
    group: str
    type: LogType
    message: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utc_now)

    def __post_init__(self):
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class GroupInfo:
    name: str            # on-disk (sanitized) folder name
    entry_count: int
    last_log_date: Optional[datetime] = None


def create_log_entry(
    group: str,
    log_type,
    message: str,
    timestamp: Optional[datetime] = None,
) -> LogEntry:
    """Factory that creates a LogEntry with a fresh id.

    *log_type* may be a LogType or its string value; unknown values raise
    ValueError. A missing *timestamp* means "now" in UTC; a naive one is
    taken to be UTC.
    """
    if timestamp is None:
        timestamp = _utc_now()
    return LogEntry(
        group=group,
        type=LogType(log_type),
        message=message,
        timestamp=timestamp,
    )
