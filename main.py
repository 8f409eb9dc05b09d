"""Server logger demo service — writes grouped demo logs until interrupted."""

import logging
import random
import signal
import sys
import time

from server_logger.config import load_config
from server_logger.dispatcher import LogDispatcher
from server_logger.models import LogType
from server_logger.store import LogStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [server-logger] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


TYPES = [
    LogType.INFO, LogType.INFO, LogType.INFO, LogType.INFO,
    LogType.DEBUG, LogType.WARNING, LogType.ERROR, LogType.AUDIT,
]
GROUPS = ["auth-api", "orders", "payment gateway", "user-svc", "catalog/api"]
MESSAGES = {
    LogType.INFO: [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
        "Database query completed in 12ms",
    ],
    LogType.DEBUG: [
        "Entering request handler",
        "Token validation started",
    ],
    LogType.WARNING: [
        "Slow query detected (>500ms)",
        "Connection pool nearing capacity",
    ],
    LogType.ERROR: [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
    ],
    LogType.AUDIT: [
        "Admin changed retention settings",
        "User exported account data",
    ],
}


def emit_demo_entry(dispatcher: LogDispatcher) -> None:
    log_type = random.choice(TYPES)
    dispatcher.log(random.choice(GROUPS), log_type, random.choice(MESSAGES[log_type]))


def main():
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    config = load_config()
    logger.info(
        "Config: log_dir=%s, default_max_entries=%d, overrides=%s",
        config.log_dir, config.default_max_entries, config.group_max_entries,
    )

    store = LogStore(config)
    dispatcher = LogDispatcher(store)
    dispatcher.start()
    emitted = 0

    try:
        while _running:
            emit_demo_entry(dispatcher)
            emitted += 1
            time.sleep(0.05)
    except KeyboardInterrupt:
        pass

    dispatcher.stop()
    for info in store.list_groups():
        logger.info("Group %s: %d entries", info.name, info.entry_count)
    logger.info("Shut down cleanly. Total entries emitted: %d", emitted)


if __name__ == "__main__":
    main()
