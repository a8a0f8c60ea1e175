"""Logging configuration for archiveops.

Provides:
- `get_logger`, a logger writing to stderr (CloudWatch on Lambda).
- Forwarding of destination event log records into standard logging.

Usage:
    from archiveops.log import get_logger, drain_event_log

    logger = get_logger(__name__)
    events = queue.Queue()
    destination.write(data, events)
    drain_event_log(events, logger)
"""

import logging
import os
import queue
from typing import Optional

from archiveops.destination import EventLogItem

FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# syslog priority -> logging level
_SYSLOG_LEVELS = {
    0: logging.CRITICAL,  # emerg
    1: logging.CRITICAL,  # alert
    2: logging.CRITICAL,  # crit
    3: logging.ERROR,
    4: logging.WARNING,
    5: logging.INFO,  # notice
    6: logging.INFO,
    7: logging.DEBUG,
}


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger.

    A stderr handler is only attached when the root logger has none; on
    Lambda the runtime already installs one on the root logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATEFMT))
        logger.addHandler(handler)

    return logger


def log_event(item: EventLogItem, logger: logging.Logger) -> None:
    """Write one event log record at the logging level matching its priority."""
    level = _SYSLOG_LEVELS.get(item.level, logging.INFO)
    logger.log(level, item.message)


def drain_event_log(events: queue.Queue, logger: Optional[logging.Logger] = None) -> int:
    """Forward every pending record in `events` to `logger`.

    Returns the number of records forwarded.
    """
    if logger is None:
        logger = get_logger("archiveops.events")

    count = 0
    while True:
        try:
            item = events.get_nowait()
        except queue.Empty:
            return count
        log_event(item, logger)
        count += 1
