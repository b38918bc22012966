"""Structured JSON logging for mcpreg.

Writes JSONL to <log_dir>/mcpreg.log with rotation (5MB, 3 backups).
Callers only ever pass redacted argument vectors in ``argv``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOG_FILENAME = "mcpreg.log"
_setup_lock = threading.Lock()
_MAX_BYTES = 5 * 1024 * 1024  # 5MB
_BACKUP_COUNT = 3
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class _JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "command"):
            entry["command"] = record.command
        if hasattr(record, "argv"):
            entry["argv"] = record.argv
        if hasattr(record, "args_data"):
            entry["args"] = record.args_data
        if hasattr(record, "exit_code"):
            entry["exit_code"] = record.exit_code
        if hasattr(record, "duration_ms"):
            entry["duration_ms"] = record.duration_ms
        if hasattr(record, "error"):
            entry["error"] = record.error
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def setup_logging(log_dir: Path) -> logging.Logger:
    """Set up structured JSON logging to <log_dir>/mcpreg.log.

    Creates *log_dir* if needed (raises OSError if it cannot). Returns the
    package logger.
    """
    logger = logging.getLogger("mcpreg")
    log_path = log_dir / _LOG_FILENAME
    target_filename = os.path.abspath(str(log_path))

    with _setup_lock:
        for h in logger.handlers[:]:
            if not isinstance(h, RotatingFileHandler):
                continue
            if h.baseFilename == target_filename:
                return logger
            # Different path: drop the stale handler.
            logger.removeHandler(h)
            h.close()

        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            str(log_path),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
        )
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if _has_console_handler(logger) else logging.INFO)
    return logger


def _has_console_handler(logger: logging.Logger) -> bool:
    return any(getattr(h, "_mcpreg_console", False) for h in logger.handlers)


def enable_console_logging(level: int = logging.DEBUG) -> logging.Logger:
    """Mirror package logs to stderr (``--verbose``)."""
    logger = logging.getLogger("mcpreg")
    with _setup_lock:
        if not _has_console_handler(logger):
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
            handler._mcpreg_console = True  # type: ignore[attr-defined]
            logger.addHandler(handler)
        logger.setLevel(level)
    return logger
