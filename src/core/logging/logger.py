"""
Present Engine Logging Subsystem

Structured logging for the present engine on top of the stdlib `logging`
package.

- Records are handed to a bounded in-memory queue (`QueueHandler`) and
  written by a background `QueueListener`, so emitting a log line never
  blocks the event loop on stream I/O. When the queue is full the record
  is dropped and a note goes to stderr.
- Console output is JSON in production (or with `LOG_JSON=true`) and
  plain or colored text otherwise.
- `LogContext` binds request fields (`user_id`, `viewer_id`,
  `correlation_id`, `component`, `operation`) in a ContextVar;
  `ContextFilter` copies them onto every record unless the call site
  already passed the same key through `extra=`.

Usage
-----
    log = get_logger(__name__)

    async with LogContext(user_id=user_id, component="present", operation="claim"):
        log.info("Presents claimed", extra={"claimed_count": 3})

Dependencies
------------
- src.core.config.config.Config
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, Optional

from src.core.config.config import Config

_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context",
    default={},
)

CONTEXT_FIELDS = (
    "user_id",
    "viewer_id",
    "correlation_id",
    "request_id",
    "component",
    "operation",
)

# Attributes every LogRecord carries; anything else on a record came from `extra=`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Settings for the logging stack, resolved from `Config` on access."""

    CONSOLE_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    QUEUE_MAX_SIZE: int = 10_000

    @property
    def log_level(self) -> int:
        level_name = getattr(Config, "LOG_LEVEL", "INFO")
        if not isinstance(level_name, str):
            return logging.INFO
        return getattr(logging, level_name.upper(), logging.INFO)

    @property
    def use_json(self) -> bool:
        json_flag = getattr(Config, "LOG_JSON", None)
        if json_flag is None:
            return Config.is_production()
        return bool(json_flag)

    @property
    def use_colors(self) -> bool:
        if self.use_json:
            return False
        return bool(getattr(Config, "LOG_COLORS", True)) and sys.stdout.isatty()


LOGGER_CONFIG = LoggerConfig()


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the bound request context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context: Dict[str, Any] = _request_context.get({})

        correlation_id = context.get("correlation_id") or context.get("request_id") or "N/A"

        # Values passed through `extra=` win over the bound context
        defaults = {
            "user_id": context.get("user_id", "N/A"),
            "viewer_id": context.get("viewer_id", "N/A"),
            "correlation_id": correlation_id,
            "request_id": context.get("request_id", correlation_id),
            "component": context.get("component") or record.name.split(".", 1)[0],
            "operation": context.get("operation", "N/A"),
        }
        for attr, value in defaults.items():
            if not hasattr(record, attr):
                setattr(record, attr, value)

        return True


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name."""

    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class JSONFormatter(logging.Formatter):
    """One JSON object per record: core fields, bound context, then `extra`."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr in CONTEXT_FIELDS:
            value = getattr(record, attr, None)
            if value not in (None, "N/A"):
                payload[attr] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue pipeline
# ============================================================================


class DroppingQueueHandler(QueueHandler):
    """QueueHandler that drops records instead of blocking when the queue is full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            sys.stderr.write(f"Logging queue full; dropped record from {record.name}\n")


_queue_listener: Optional[QueueListener] = None
_queue_handler: Optional[DroppingQueueHandler] = None
_atexit_registered = False


def _build_console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(LOGGER_CONFIG.log_level)

    if LOGGER_CONFIG.use_json:
        formatter: logging.Formatter = JSONFormatter()
    elif LOGGER_CONFIG.use_colors:
        formatter = ColoredFormatter(
            fmt=LOGGER_CONFIG.CONSOLE_FORMAT, datefmt=LOGGER_CONFIG.DATE_FORMAT
        )
    else:
        formatter = logging.Formatter(
            fmt=LOGGER_CONFIG.CONSOLE_FORMAT, datefmt=LOGGER_CONFIG.DATE_FORMAT
        )
    handler.setFormatter(formatter)
    return handler


def is_logging_initialized() -> bool:
    return _queue_handler is not None


def setup_logging() -> None:
    """
    Install the queue pipeline on the root logger.

    Idempotent. Handlers installed by other code (pytest's caplog, for
    instance) are left in place.
    """
    global _queue_listener, _queue_handler, _atexit_registered

    if _queue_handler is not None:
        return

    root = logging.getLogger()
    root.setLevel(LOGGER_CONFIG.log_level)

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(LOGGER_CONFIG.QUEUE_MAX_SIZE)

    _queue_listener = QueueListener(
        log_queue,
        _build_console_handler(),
        respect_handler_level=True,
    )
    _queue_listener.start()

    _queue_handler = DroppingQueueHandler(log_queue)
    _queue_handler.setLevel(LOGGER_CONFIG.log_level)
    # Root logger filters do not run for records propagated from child loggers
    _queue_handler.addFilter(ContextFilter())
    root.addHandler(_queue_handler)

    for noisy in ("sqlalchemy.engine", "asyncio", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if not _atexit_registered:
        atexit.register(shutdown_logging)
        _atexit_registered = True

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "log_level": logging.getLevelName(LOGGER_CONFIG.log_level),
            "json": LOGGER_CONFIG.use_json,
            "queue_max_size": LOGGER_CONFIG.QUEUE_MAX_SIZE,
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and detach the pipeline. Safe to call repeatedly."""
    global _queue_listener, _queue_handler

    if _queue_handler is None:
        return

    logging.getLogger().removeHandler(_queue_handler)
    _queue_handler.close()
    _queue_handler = None

    if _queue_listener is not None:
        # stop() drains every record already queued before returning
        _queue_listener.stop()
        for handler in _queue_listener.handlers:
            handler.flush()
        _queue_listener = None


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current request context."""
    return dict(_request_context.get({}))


class LogContext:
    """
    Bind request fields for the duration of a block (sync or async).

    A correlation id is generated when neither `correlation_id` nor
    `request_id` is given.
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        viewer_id: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        effective = correlation_id or request_id or uuid.uuid4().hex[:8]

        self.context: Dict[str, Any] = {
            "user_id": str(user_id) if user_id is not None else "N/A",
            "viewer_id": viewer_id or "N/A",
            "component": component,
            "operation": operation,
            "correlation_id": effective,
            "request_id": request_id or effective,
            **extra,
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _request_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(
    user_id: Optional[int] = None,
    viewer_id: Optional[str] = None,
    component: Optional[str] = None,
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: Any,
) -> None:
    """Merge fields into the current context without a scoped block."""
    current = dict(_request_context.get({}))

    fields = {
        "user_id": str(user_id) if user_id is not None else None,
        "viewer_id": viewer_id,
        "component": component,
        "operation": operation,
        "correlation_id": correlation_id,
        "request_id": request_id,
    }
    current.update({key: value for key, value in fields.items() if value is not None})
    if request_id and "correlation_id" not in current:
        current["correlation_id"] = request_id

    current.update(extra)
    _request_context.set(current)


def clear_log_context() -> None:
    _request_context.set({})


setup_logging()
