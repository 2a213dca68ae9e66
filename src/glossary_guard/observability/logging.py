"""Logging setup: queue-backed stdlib handlers, JSON-lines or text output, structlog routing."""

from __future__ import annotations

import atexit
import contextvars
import json
import logging
import logging.handlers
import math
import queue
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, cast

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

LOGGER_NAME: Final[str] = "glossary_guard"
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")
_DEFAULT_QUEUE_SIZE: Final[int] = 4096

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_CorrelationState = tuple[tuple[str, str], ...]
_CORRELATION_CONTEXT: contextvars.ContextVar[_CorrelationState] = contextvars.ContextVar(
    "glossary_guard_correlation", default=()
)

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: LoggingHandle | None = None
_ATEXIT_REGISTERED = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Settings mirrored from the ``[observability]`` config section."""

    level: int | str = "WARNING"
    log_format: str = "json"
    log_file: Path | str | None = None
    logger_name: str = LOGGER_NAME
    queue_size: int = _DEFAULT_QUEUE_SIZE

    @classmethod
    def from_mapping(cls, observability: Mapping[str, object]) -> LoggingConfig:
        raw_level = observability.get("log_level", "WARNING")
        raw_format = observability.get("log_format", "json")
        raw_file = observability.get("log_file")
        return cls(
            level=raw_level if isinstance(raw_level, (int, str)) else "WARNING",
            log_format=raw_format if isinstance(raw_format, str) else "json",
            log_file=raw_file if isinstance(raw_file, (str, Path)) and raw_file else None,
        )


class _CorrelationQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that stamps the caller's correlation context onto each record.

    The listener thread formats records later, outside the caller's context, so the
    context is captured here at enqueue time.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        context = get_correlation_context()
        if context:
            record.correlation = context
        prepared = super().prepare(record)
        return cast("logging.LogRecord", prepared)

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            return


class _JsonLineFormatter(logging.Formatter):
    """One canonical JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in sorted(_record_correlation(record).items()):
            event[key] = value

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras
        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """``time level logger: message key=value ...`` lines for humans."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = {**_record_correlation(record), **_extract_extra_fields(record)}
        if not pairs:
            return line
        rendered = " ".join(
            f"{key}={json.dumps(value, ensure_ascii=False)}" for key, value in sorted(pairs.items())
        )
        return f"{line} {rendered}"


class LoggingHandle:
    """Runtime handle for an active logging setup."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        queue_handler: _CorrelationQueueHandler,
        sink: logging.Handler,
        listener: logging.handlers.QueueListener,
    ) -> None:
        self.logger = logger
        self._queue_handler = queue_handler
        self._sink = sink
        self._listener = listener
        self._shutdown_lock = threading.Lock()
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            # stop() drains queued records before returning.
            self._listener.stop()
            self.logger.removeHandler(self._queue_handler)
            self._queue_handler.close()
            self._sink.flush()
            self._sink.close()
            self._is_shutdown = True


def setup_logging(config: LoggingConfig | None = None) -> LoggingHandle:
    """Install queue-backed handlers on the package logger and route structlog through it."""

    config = config if config is not None else LoggingConfig()
    _shutdown_previous_active_handle()

    level = _parse_log_level(config.level)
    if config.log_format not in LOG_FORMATS:
        raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {config.log_format!r}")
    if config.queue_size <= 0:
        raise ValueError("queue_size must be > 0")

    formatter: logging.Formatter = (
        _JsonLineFormatter() if config.log_format == "json" else _TextFormatter()
    )
    sink: logging.Handler
    if config.log_file is not None:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_path, encoding="utf-8")
    else:
        sink = logging.StreamHandler(sys.stderr)
    sink.setLevel(level)
    sink.setFormatter(formatter)

    logger = logging.getLogger(config.logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    log_queue: queue.Queue[object] = queue.Queue(maxsize=config.queue_size)
    queue_handler = _CorrelationQueueHandler(log_queue)
    queue_handler.setLevel(level)
    listener = logging.handlers.QueueListener(log_queue, sink, respect_handler_level=True)
    listener.start()
    logger.addHandler(queue_handler)

    configure_structlog()

    handle = LoggingHandle(
        logger=logger, queue_handler=queue_handler, sink=sink, listener=listener
    )
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = handle
    _register_atexit_shutdown()
    return handle


def configure_structlog() -> None:
    """Send structlog events to stdlib logging, event keys becoming record extras."""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def shutdown_logging(handle: LoggingHandle | None = None) -> None:
    resolved = handle if handle is not None else get_active_logging_handle()
    if resolved is None:
        return
    resolved.shutdown()
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        if _ACTIVE_HANDLE is resolved:
            _ACTIVE_HANDLE = None


def get_active_logging_handle() -> LoggingHandle | None:
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


def get_correlation_context() -> dict[str, str]:
    """Return the current correlation context as a plain dictionary."""
    return dict(_CORRELATION_CONTEXT.get())


def set_correlation_fields(**fields: str | None) -> contextvars.Token[_CorrelationState]:
    """Set correlation fields for the active context and return a reset token."""
    state = get_correlation_context()
    for key, value in fields.items():
        key_name = key.strip()
        if not key_name:
            raise ValueError("correlation key must not be empty")
        if value is None:
            state.pop(key_name, None)
            continue
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"correlation value for {key_name!r} must be a non-empty string")
        state[key_name] = value.strip()
    return _CORRELATION_CONTEXT.set(tuple(state.items()))


def reset_correlation_fields(token: contextvars.Token[_CorrelationState]) -> None:
    _CORRELATION_CONTEXT.reset(token)


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Temporarily bind correlation fields for log records in scope."""
    token = set_correlation_fields(**fields)
    try:
        yield
    finally:
        reset_correlation_fields(token)


def _shutdown_previous_active_handle() -> None:
    existing = get_active_logging_handle()
    if existing is not None:
        existing.shutdown()
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = None


def _register_atexit_shutdown() -> None:
    global _ATEXIT_REGISTERED
    if _ATEXIT_REGISTERED:
        return
    atexit.register(shutdown_logging)
    _ATEXIT_REGISTERED = True


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_correlation(record: logging.LogRecord) -> dict[str, str]:
    merged = get_correlation_context()
    captured = getattr(record, "correlation", None)
    if isinstance(captured, Mapping):
        for key, value in captured.items():
            if isinstance(key, str) and isinstance(value, str):
                merged[key] = value
    return merged


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key == "correlation" or key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LOGGER_NAME",
    "LOG_FORMATS",
    "LoggingConfig",
    "LoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "get_active_logging_handle",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "shutdown_logging",
]
