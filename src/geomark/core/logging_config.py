"""
Centralized logging configuration for Geomark.

Console output is colored in development and plain elsewhere; an optional
rotating log file can be written as text or JSON lines. ``LogContext``
stamps extra fields (``shape_id``, ``query_id``) onto every record emitted
inside a ``with`` block.
"""

import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from geomark.core.config import settings

# Attributes every LogRecord carries; anything else was added as context
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

DEV_CONSOLE_FORMAT = "%(levelname)s | %(asctime)s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(asctime)s - %(name)s - %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(levelname)s - %(name)s - "
    "%(module)s:%(funcName)s:%(lineno)d - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are only interesting when debugging the geocoder
_NOISY_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields included."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        )
        return json.dumps(payload, default=str)


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        color = self.COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers format the same record
            record.levelname = original


def get_log_level(level_name: str) -> int:
    """
    Convert a level name to its logging constant.

    Unknown names map to INFO.
    """
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.environment == "development":
        handler.setFormatter(ColoredFormatter(DEV_CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: Path, level: int, json_logs: bool) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_logs: Optional[bool] = None,
    enable_console: bool = True,
) -> None:
    """
    Configure the root logger.

    Arguments left as None fall back to the GEOMARK_* settings; without an
    explicit level, development logs at DEBUG and other environments at INFO.
    Existing root handlers are replaced.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file to write in addition to the console
        json_logs: Write the log file as JSON lines
        enable_console: Log to stdout
    """
    log_level = log_level or settings.log_level
    if log_level is None:
        log_level = "DEBUG" if settings.environment == "development" else "INFO"
    log_file = log_file if log_file is not None else settings.log_file
    json_logs = settings.json_logs if json_logs is None else json_logs

    level = get_log_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if enable_console:
        root_logger.addHandler(_console_handler(level))
    if log_file:
        root_logger.addHandler(_file_handler(Path(log_file), level, json_logs))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={log_level}, environment={settings.environment}, "
        f"console={enable_console}, file={log_file or '-'}, json_logs={json_logs}"
    )


class LogContext:
    """
    Stamp extra fields onto records created inside the block.

    The record factory is process-global, so only wrap synchronous code;
    async code should pass ``extra=`` to the logging call instead.

    Usage:
        with LogContext(shape_id=12):
            logger.info("Recomputing measurement")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Optional[Any] = None

    def __enter__(self) -> "LogContext":
        previous = self._previous = logging.getLogRecordFactory()
        fields = self.fields

        def factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            record.__dict__.update(fields)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._previous is not None:
            logging.setLogRecordFactory(self._previous)


def add_log_context(**fields: Any) -> LogContext:
    """Shorthand for ``LogContext(**fields)``."""
    return LogContext(**fields)
