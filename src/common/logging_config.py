"""
Logging configuration for the site builder.

Provides structured logging with JSON and colored console output.
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """JSON log formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name on a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno)
        if not color:
            return super().formatMessage(record)
        # Other handlers share the record, so color a copy
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().formatMessage(colored)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
):
    """
    Configure logging for a build run.

    Args:
        level: Console logging level (default: INFO)
        log_file: Path to a rotating log file (optional)
        json_logs: Use JSON format for file logs
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, logging.DEBUG) if log_file else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    fmt = "%(levelname)s %(name)s: %(message)s"
    if sys.stderr.isatty():
        console_handler.setFormatter(ColoredFormatter(fmt))
    else:
        console_handler.setFormatter(logging.Formatter(fmt))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        if json_logs:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"
            ))

        root_logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("log_context", default={})
_factory_lock = threading.Lock()
_factory_installed = False


def _install_record_factory() -> None:
    """Attach the active LogContext fields to every record, once per process."""
    global _factory_installed
    with _factory_lock:
        if _factory_installed:
            return
        base_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = base_factory(*args, **kwargs)
            context = _log_context.get()
            if context:
                record.extra_data = dict(context)
            return record

        logging.setLogRecordFactory(record_factory)
        _factory_installed = True


class LogContext:
    """
    Context manager for adding fields to log records.

    Fields nest and are local to the current thread, so worker threads
    can each tag their own records.

    Example:
        with LogContext(app_id="chess"):
            logger.info("Fetching manifest")  # JSON logs include app_id
    """

    def __init__(self, **fields):
        self.fields = fields
        self._token = None

    def __enter__(self):
        _install_record_factory()
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, *exc_info):
        _log_context.reset(self._token)
