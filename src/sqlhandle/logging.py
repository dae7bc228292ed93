"""
Log formats, an encoding-safe record factory and handlers for sqlhandle diagnostics.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from logging.handlers import RotatingFileHandler
from typing import Sequence

from .config import DatabaseConfig
from .utils import sanitize_string


__all__ = [
    "CachedHandler",
    "EncodingSafeLogRecord",
    "LOG_FMT_LONG",
    "LOG_FMT_SHORT",
    "setup_logging",
]

LOG_FMT_LONG = logging.Formatter(
    fmt="%(asctime)s %(module)s %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
LOG_FMT_SHORT = logging.Formatter(fmt="%(message)s")


class EncodingSafeLogRecord(logging.LogRecord):
    """Log record whose message never contains surrogate escapes

    Diagnostics may quote database paths or SQL text which were decoded with
    "surrogateescape" and would raise a :exc:`UnicodeEncodeError` when printed.
    """

    def getMessage(self) -> str:
        return sanitize_string(super().getMessage())


logging.setLogRecordFactory(EncodingSafeLogRecord)


class CachedHandler(logging.Handler):
    """Handler which keeps emitted records in memory

    Attach it to the logger passed to :class:`sqlhandle.core.Database` to inspect the
    diagnostics of failed operations.

    :param level: Minimum level of records to keep.
    :param maxlen: Number of most recent records to keep. Keeps all records if
        ``None``.
    """

    cached_records: deque[logging.LogRecord]

    def __init__(self, level: int = logging.NOTSET, maxlen: int | None = None) -> None:
        super().__init__(level=level)
        self.cached_records = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        self.cached_records.append(record)

    def get_last_message(self) -> str:
        """
        :returns: Message of the most recent record, empty if there is none.
        """
        if not self.cached_records:
            return ""
        return self.cached_records[-1].getMessage()

    def get_all_messages(self) -> list[str]:
        """
        :returns: Messages of all kept records, oldest first.
        """
        return [record.getMessage() for record in self.cached_records]

    def clear(self) -> None:
        """Drops all kept records."""
        self.cached_records.clear()


def setup_logging(
    config_name: str,
    stderr: bool = True,
    logfile: str | None = None,
) -> Sequence[logging.Handler]:
    """
    Attaches handlers to the "sqlhandle" logger and sets its level to the log level of
    the given config.

    :param config_name: Config name to read the log level from.
    :param stderr: Whether to print short messages to stderr.
    :param logfile: Path of a rotating log file with timestamped messages, if any.
    :returns: The attached handlers.
    """
    level = DatabaseConfig(config_name).get("app", "log_level")

    logger = logging.getLogger("sqlhandle")
    logger.setLevel(level)

    handlers: list[logging.Handler] = []

    if logfile:
        file_handler = RotatingFileHandler(logfile, maxBytes=10**7, backupCount=1)
        file_handler.setFormatter(LOG_FMT_LONG)
        handlers.append(file_handler)

    if stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(LOG_FMT_SHORT)
        handlers.append(stream_handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)

    return handlers
