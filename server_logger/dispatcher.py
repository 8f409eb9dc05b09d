"""LogDispatcher: fire-and-forget front end that feeds a LogStore from a worker thread."""

import logging
import os
import queue
import sys
from threading import Thread

from server_logger.store import LogStore

logger = logging.getLogger(__name__)

_STOP = object()


def enrich_message(message: str, filename: str, lineno: int, function: str) -> str:
    """Prefix *message* with its call site, e.g. ``[views.py:42 checkout] ...``."""
    return f"[{os.path.basename(filename)}:{lineno} {function}] {message}"


class LogDispatcher(Thread):
    """Single consumer thread; every store write goes through its queue.

    ``log()`` returns as soon as the entry is queued, so callers must not
    assume the entry is on disk. ``flush()`` waits for the queue to drain.
    """

    def __init__(self, store: LogStore):
        super().__init__(daemon=True, name="log-dispatcher")
        self._store = store
        self._queue: queue.Queue = queue.Queue()
        self._stopped = False
        self._written = 0
        self._dropped = 0

    @property
    def store(self) -> LogStore:
        return self._store

    @property
    def written(self) -> int:
        return self._written

    @property
    def dropped(self) -> int:
        return self._dropped

    def log(self, group: str, log_type, message: str, stacklevel: int = 1):
        """Queue an entry, tagging the message with the caller's file, line and function.

        *stacklevel* works as in ``logging.Logger.log``: raise it when calling
        through a helper so the helper's caller is recorded instead.
        """
        frame = sys._getframe(stacklevel)
        code = frame.f_code
        enriched = enrich_message(message, code.co_filename, frame.f_lineno, code.co_name)
        self.submit(group, log_type, enriched)

    def submit(self, group: str, log_type, message: str, timestamp=None):
        """Queue an already-enriched message. Dropped with a warning after stop()."""
        if self._stopped:
            logger.warning("Dispatcher stopped, dropping log for group %r", group)
            return
        self._queue.put((group, log_type, message, timestamp))

    def _handle(self, item):
        group, log_type, message, timestamp = item
        try:
            entry = self._store.write(group, log_type, message, timestamp=timestamp)
        except ValueError as e:
            logger.warning("Rejected log for group %r: %s", group, e)
            entry = None
        except Exception:
            logger.exception("Unexpected error writing log for group %r", group)
            entry = None
        if entry is None:
            self._dropped += 1
        else:
            self._written += 1

    def run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._handle(item)
            finally:
                self._queue.task_done()

    def _drain_inline(self):
        # Used when the worker thread is not running.
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                if item is not _STOP:
                    self._handle(item)
            finally:
                self._queue.task_done()

    def flush(self):
        """Block until every queued entry has been handled."""
        if self.is_alive():
            self._queue.join()
        else:
            self._drain_inline()

    def stop(self, timeout: float | None = 5.0):
        """Refuse new entries, drain what is queued, then end the thread."""
        if self._stopped:
            return
        self._stopped = True
        if self.is_alive():
            self._queue.put(_STOP)
            self.join(timeout=timeout)
        else:
            self._drain_inline()
        logger.info("Dispatcher stopped: %d written, %d dropped", self._written, self._dropped)
