"""
Structured Logging: JSON-Formatted with Bound Context

Provides:
- JSON-formatted log output
- Keyword-argument fields instead of interpolated messages
- Log level filtering
- Context propagation via contextvars

Designed for centralized log aggregation (ELK, Loki). The library only
emits records; the hosting application decides where they go by calling
``setup_logging`` or configuring ``logging`` itself.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional, TextIO


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


# Context variable for request-scoped fields
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes owned by logging.LogRecord; passing one of them in ``extra``
# makes Logger.makeRecord raise KeyError
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "taskName", "message", "asctime",
})


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Bound context comes first, then the record's own fields; LogRecord
    bookkeeping attributes are left out.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        data.update(_log_context.get())
        data.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        )
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class StructuredLogger:
    """
    Structured logger with context propagation.

    Usage:
        logger = StructuredLogger("bucketline.client")

        with logger.context(batch_id="42"):
            logger.info("s3.add.request", bucket_name="media", key="a.jpg")
    """

    __slots__ = ("_logger", "_default_extra")

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)
        self._default_extra: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(
        self,
        message: str,
        exc_info: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, **kwargs)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level.value):
            return
        extra = {
            (f"field_{key}" if key in _RESERVED_ATTRS else key): value
            for key, value in {**self._default_extra, **kwargs}.items()
        }
        try:
            self._logger.log(level.value, message, exc_info=exc_info, extra=extra)
        except Exception:
            # Filters and handlers must not change the caller's outcome;
            # report the way logging.Handler.handleError does
            if logging.raiseExceptions:
                try:
                    sys.stderr.write(f"--- Logging error in {self._logger.name}: {message} ---\n")
                    traceback.print_exc(file=sys.stderr)
                except OSError:
                    pass

    def with_extra(self, **kwargs: Any) -> StructuredLogger:
        """Create child logger with additional default fields."""
        new_logger = StructuredLogger(self._logger.name)
        new_logger._default_extra = {**self._default_extra, **kwargs}
        return new_logger

    @staticmethod
    def context(**kwargs: Any):
        """Context manager for request-scoped fields."""
        return _LogContext(kwargs)


class _LogContext:
    """Context manager for adding fields to all logs."""

    __slots__ = ("_fields", "_token")

    def __init__(self, fields: dict[str, Any]) -> None:
        self._fields = fields
        self._token = None

    def __enter__(self) -> _LogContext:
        new_context = {**_log_context.get(), **self._fields}
        self._token = _log_context.set(new_context)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token:
            _log_context.reset(self._token)


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    json_output: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure root logger for structured logging.

    Args:
        level: Minimum log level
        json_output: Use JSON formatting
        stream: Output stream (default: stderr)
    """
    root = logging.getLogger()
    root.setLevel(level.value)

    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level.value)

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))

    root.addHandler(handler)

    # Suppress noisy loggers
    for noisy in ("botocore", "aiobotocore", "aioboto3", "urllib3", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
