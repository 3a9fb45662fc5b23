"""
Structured logging for LinguaLevel.

Purpose
-------
One logging setup shared by every module. Records are pushed onto a bounded
queue and written by a background listener thread, so a slow stream or file
never stalls the event loop that runs XP awards.

Output
------
- Console: JSON in production (or when LOG_JSON is set), coloured text on an
  interactive terminal, plain text otherwise
- File: daily rotating JSON log under LOGS_DIR, only when LOG_TO_FILE is on

Context
-------
`LogContext` and `set_log_context()` store learner_id, operation, component
and correlation_id in a ContextVar. `ContextFilter` copies them onto every
record, so a single `async with LogContext(learner_id=...)` around a service
call tags all the logs it produces, including ones from the store.

Structured fields go through `extra={...}` and end up under `"extra"` in the
JSON output.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from lingualevel.core.config.config import Config

_log_context: ContextVar[Dict[str, Any]] = ContextVar("lingualevel_log_context", default={})

CONTEXT_FIELDS = ("learner_id", "operation", "component", "correlation_id")


# ============================================================================
# SETTINGS
# ============================================================================


@dataclass(frozen=True)
class LoggerConfig:
    """Snapshot of the logging-related Config values."""

    level: int
    json_output: bool
    colors: bool
    to_file: bool
    logs_dir: Path

    text_format: str = "%(asctime)s %(levelname)-8s %(name)s [%(learner_id)s] %(message)s"
    date_format: str = "%H:%M:%S"
    file_name: str = "lingualevel.json.log"
    file_backups: int = 7
    queue_size: int = 10_000

    @classmethod
    def from_config(cls) -> LoggerConfig:
        production = str(Config.ENVIRONMENT).lower() == "production"
        json_output = production if Config.LOG_JSON is None else bool(Config.LOG_JSON)
        level = getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO)
        return cls(
            level=level if isinstance(level, int) else logging.INFO,
            json_output=json_output,
            colors=not json_output and bool(Config.LOG_COLORS) and sys.stdout.isatty(),
            to_file=bool(Config.LOG_TO_FILE),
            logs_dir=Path(Config.LOGS_DIR),
        )


# ============================================================================
# FILTERS & FORMATTERS
# ============================================================================


class ContextFilter(logging.Filter):
    """Attach the current log context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        record.learner_id = context.get("learner_id") or "-"
        record.operation = context.get("operation") or "-"
        record.component = context.get("component") or record.name.split(".")[-1]
        record.correlation_id = context.get("correlation_id") or "-"
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}{self.RESET}" if color else line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; `extra` fields are nested under "extra"."""

    _RESERVED = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value and value != "-":
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._RESERVED and key not in CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# QUEUE PLUMBING
# ============================================================================


class _DroppingQueueHandler(QueueHandler):
    """Queue handler that counts and drops records when the queue is full."""

    dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            type(self).dropped += 1


class _LoggingState:
    listener: Optional[QueueListener] = None
    handler: Optional[QueueHandler] = None


def _make_handlers(settings: LoggerConfig) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if settings.json_output:
        console.setFormatter(JSONFormatter())
    else:
        formatter_cls = ColoredFormatter if settings.colors else logging.Formatter
        console.setFormatter(formatter_cls(settings.text_format, settings.date_format))
    handlers: List[logging.Handler] = [console]

    if settings.to_file:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        rotating = TimedRotatingFileHandler(
            settings.logs_dir / settings.file_name,
            when="midnight",
            backupCount=settings.file_backups,
            encoding="utf-8",
            utc=True,
        )
        rotating.setFormatter(JSONFormatter())
        handlers.append(rotating)

    for handler in handlers:
        handler.setLevel(settings.level)
    return handlers


def setup_logging() -> None:
    """Install the queue handler on the root logger. Safe to call twice."""
    if _LoggingState.handler is not None:
        return

    settings = LoggerConfig.from_config()
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(settings.queue_size)

    # Filter on the queue handler: records must carry context before they
    # leave the calling task.
    queue_handler = _DroppingQueueHandler(log_queue)
    queue_handler.addFilter(ContextFilter())

    listener = QueueListener(log_queue, *_make_handlers(settings), respect_handler_level=True)
    listener.start()

    root = logging.getLogger()
    root.setLevel(settings.level)
    root.addHandler(queue_handler)
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _LoggingState.handler = queue_handler
    _LoggingState.listener = listener

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={
            "level": logging.getLevelName(settings.level),
            "json": settings.json_output,
            "to_file": settings.to_file,
        },
    )


def shutdown_logging() -> None:
    """Flush pending records and remove the handler installed by setup_logging."""
    if _LoggingState.listener is not None:
        _LoggingState.listener.stop()
        for handler in _LoggingState.listener.handlers:
            handler.close()
    if _LoggingState.handler is not None:
        logging.getLogger().removeHandler(_LoggingState.handler)
    _LoggingState.listener = None
    _LoggingState.handler = None


def get_logging_health() -> Dict[str, Any]:
    handler = _LoggingState.handler
    return {
        "initialized": handler is not None,
        "queue_size": handler.queue.qsize() if handler is not None else 0,
        "records_dropped": _DroppingQueueHandler.dropped,
    }


# ============================================================================
# PUBLIC API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Tag every log record inside a block with learner and operation context.

    Works as a sync or async context manager. A correlation id is generated
    when none is given.

    Example
    -------
    >>> async with LogContext(learner_id="learner-42", operation="award_xp"):
    ...     logger.info("Awarding XP")
    """

    def __init__(
        self,
        learner_id: Optional[str] = None,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        parent = _log_context.get()
        fields = {
            "learner_id": learner_id,
            "operation": operation,
            "component": component,
            "correlation_id": correlation_id,
            **extra,
        }
        self.context: Dict[str, Any] = {
            **parent,
            **{key: value for key, value in fields.items() if value is not None},
        }
        self.context.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> LogContext:
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current context; None values are ignored."""
    context = dict(_log_context.get())
    context.update({key: value for key, value in fields.items() if value is not None})
    _log_context.set(context)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set({})


setup_logging()
