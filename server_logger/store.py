"""Grouped log store — one capped, timestamp-ordered JSON-lines file per group.

Layout::

    <log_dir>/<sanitized group>/logs.jsonl

Every write is a read-append-trim-rewrite cycle ("rotation") that runs under
the group's lock and finishes with an atomic replace, so readers never see a
half-written file and never need a lock themselves.
"""

import logging
import os
import re
import threading
from datetime import date, datetime, time, timedelta, timezone

from server_logger.codec import DecodeError, decode_entry, encode_entry, format_timestamp
from server_logger.config import StoreConfig
from server_logger.models import GroupInfo, LogEntry, create_log_entry

logger = logging.getLogger(__name__)

LOG_FILENAME = "logs.jsonl"

# Path separators, shell/Windows-reserved characters and any whitespace.
_UNSAFE_CHARS = re.compile(r'[/\\?%*|":<>\s]')

_DISTANT_PAST = datetime.min.replace(tzinfo=timezone.utc)


def sanitize_group_name(name: str) -> str:
    """Map a raw group name to a filesystem-safe folder name.

    Distinct names can collapse to the same folder ("a/b" and "a b" both
    become "a_b"); those groups then share one file. "." and ".." are not
    rewritten, so they resolve to the base directory and its parent.
    """
    return _UNSAFE_CHARS.sub("_", name)


def _as_utc_datetime(value) -> datetime:
    """Accept a datetime or date; naive values and plain dates are UTC."""
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise TypeError(f"Expected datetime or date, got {type(value).__name__}")


def next_day_start(value) -> datetime:
    """Midnight at the start of the calendar day after *value*.

    Computed in *value*'s own timezone when it is aware, UTC otherwise.
    """
    dt = _as_utc_datetime(value)
    day_start = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    return day_start + timedelta(days=1)


def _same_dir(a: str, b: str) -> bool:
    return os.path.normpath(os.path.abspath(a)) == os.path.normpath(os.path.abspath(b))


class LogStore:
    def __init__(self, config: StoreConfig | None = None, time_func=None):
        self._config = config or StoreConfig()
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._config_lock = threading.Lock()
        self._registry_lock = threading.Lock()
        self._group_locks: dict[str, threading.Lock] = {}
        self._ensure_dir(self._config.log_dir)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, config: StoreConfig) -> None:
        """Adopt *config*. A new log_dir is created best-effort."""
        with self._config_lock:
            old_dir = self._config.log_dir
            self._config = config
            if not _same_dir(old_dir, config.log_dir):
                self._ensure_dir(config.log_dir)
                logger.info("Log directory changed to %s", config.log_dir)
        logger.debug(
            "Store configured: log_dir=%s, default_max_entries=%d, %d group override(s)",
            config.log_dir, config.default_max_entries, len(config.group_max_entries),
        )

    def get_config(self) -> StoreConfig:
        with self._config_lock:
            return self._config

    @staticmethod
    def _ensure_dir(path: str) -> bool:
        try:
            os.makedirs(path, exist_ok=True)
            return True
        except OSError as e:
            logger.warning("Could not create log directory %s: %s. Logging may fail.", path, e)
            return False

    def _lock_for(self, path: str) -> threading.Lock:
        # One lock per file path ever written; never pruned. Fine for a
        # bounded set of groups.
        key = os.path.abspath(path)
        with self._registry_lock:
            lock = self._group_locks.get(key)
            if lock is None:
                lock = self._group_locks[key] = threading.Lock()
            return lock

    @staticmethod
    def group_path(log_dir: str, group: str) -> str:
        return os.path.join(log_dir, sanitize_group_name(group), LOG_FILENAME)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, group: str, log_type, message: str, timestamp: datetime | None = None) -> LogEntry | None:
        """Persist one entry and enforce the group's cap.

        Returns the stored entry, or None if an I/O error dropped it. I/O
        errors are logged, never raised. An unknown *log_type* raises
        ValueError before anything touches the disk.
        """
        entry = create_log_entry(
            group, log_type, message,
            timestamp=timestamp if timestamp is not None else self._time_func(),
        )
        logger.debug(
            "[%s] [%s] [%s]: %s",
            format_timestamp(entry.timestamp), group, entry.type.value.upper(), message,
        )

        config = self.get_config()
        path = self.group_path(config.log_dir, group)

        with self._lock_for(path):
            try:
                os.makedirs(os.path.dirname(path), exist_ok=True)
                entries = self._load_entries(path)
                entries.append(entry)
                entries.sort(key=lambda e: e.timestamp)

                cap = config.max_entries_for(group)
                if cap > 0 and len(entries) > cap:
                    del entries[: len(entries) - cap]

                self._replace_file(path, entries)
            except (OSError, ValueError) as e:
                logger.warning("Error writing log for group %r at %s: %s", group, path, e)
                return None
        return entry

    @staticmethod
    def _replace_file(path: str, entries: list[LogEntry]):
        """Atomic write: write to tmp file then replace."""
        lines = [encode_entry(e) for e in entries]
        content = "\n".join(lines) + ("\n" if lines else "")
        tmp_path = path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except (OSError, ValueError):
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @staticmethod
    def _read_lines(path: str) -> list[bytes]:
        """Non-empty raw lines of *path*; empty list if missing or unreadable."""
        try:
            with open(path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            return []
        return [line for line in data.split(b"\n") if line.strip()]

    def _load_entries(self, path: str) -> list[LogEntry]:
        entries = []
        skipped = 0
        for line in self._read_lines(path):
            try:
                entries.append(decode_entry(line))
            except DecodeError:
                skipped += 1
        if skipped:
            logger.debug("Skipped %d malformed line(s) in %s", skipped, path)
        return entries

    def list_groups(self) -> list[GroupInfo]:
        """Summaries of every group folder, most recently written first."""
        log_dir = self.get_config().log_dir
        try:
            names = sorted(os.listdir(log_dir))
        except OSError as e:
            logger.debug("Cannot list log directory %s: %s", log_dir, e)
            return []

        groups = []
        for name in names:
            if name.startswith("."):
                continue
            group_dir = os.path.join(log_dir, name)
            if not os.path.isdir(group_dir):
                continue

            lines = self._read_lines(os.path.join(group_dir, LOG_FILENAME))
            last_log_date = None
            if lines:
                try:
                    last_log_date = decode_entry(lines[-1]).timestamp
                except DecodeError:
                    pass
            groups.append(GroupInfo(name=name, entry_count=len(lines), last_log_date=last_log_date))

        groups.sort(key=lambda g: g.last_log_date or _DISTANT_PAST, reverse=True)
        return groups

    def query(
        self,
        group: str,
        start_date=None,
        end_date=None,
        limit: int = 100,
        ascending: bool = False,
    ) -> list[LogEntry]:
        """Entries of *group* filtered by date, ordered, then capped at *limit*.

        *start_date* is inclusive. *end_date* includes its whole calendar day.
        A negative *limit* returns every match.
        """
        path = self.group_path(self.get_config().log_dir, group)
        if not os.path.exists(path):
            logger.debug("Log file for group %r not found at %s", group, path)
            return []

        # The file is kept in ascending timestamp order.
        entries = self._load_entries(path)

        if start_date is not None:
            start = _as_utc_datetime(start_date)
            entries = [e for e in entries if e.timestamp >= start]
        if end_date is not None:
            cutoff = next_day_start(end_date)
            entries = [e for e in entries if e.timestamp < cutoff]

        if not ascending:
            entries.reverse()

        if limit >= 0:
            entries = entries[:limit]
        return entries
