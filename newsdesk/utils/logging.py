"""Logging configuration utilities.

The terminal UI owns stdout, so interactive runs log to a rotating file under
the config directory. The daemon logs to stdout, which the spawning client
redirects into ``serve.log``.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Literal, Optional

LOG_LEVEL = os.environ.get("NEWSDESK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("NEWSDESK_LOG_FORMAT", "text").lower()
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

# Request-level chatter from these drowns out our own records at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "charset_normalizer")

LogOutput = Literal["stdout", "file"]
LogFormat = Literal["text", "json"]

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(threadName)s | %(message)s"
JSON_FORMAT = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "thread": "%(threadName)s", "message": "%(message)s"}'


def configure_logging(
    level: str | int | None = None,
    output: LogOutput = "file",
    file_path: Optional[str] = None,
    log_format: LogFormat | None = None,
) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Logging level as a string (e.g., "INFO") or numeric value. Defaults to
        ``NEWSDESK_LOG_LEVEL``, read at call time so ``.env`` values apply.
    output:
        "stdout" for the daemon, "file" for everything that shares the
        terminal with the UI.
    file_path:
        Log file for ``output="file"``. Without one, records are dropped.
    log_format:
        "text" or "json".
    """
    if level is None:
        level = os.environ.get("NEWSDESK_LOG_LEVEL", LOG_LEVEL)
    if isinstance(level, str):
        level = level.upper()
    if log_format is None:
        log_format = (os.environ.get("NEWSDESK_LOG_FORMAT") or LOG_FORMAT).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(TEXT_FORMAT if log_format == "text" else JSON_FORMAT)

    if output == "stdout":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    elif file_path:
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(file_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    else:
        handler = logging.NullHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    if root_logger.level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
