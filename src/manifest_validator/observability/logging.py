"""
manifest-validator — per-run structured logging

File: src/manifest_validator/observability/logging.py

Purpose
- Write one JSON object per log record to ``<log_dir>/<run_id>/validator.jsonl``.
- Keep stdout free for report blocks; stderr is an optional second sink.
- Route ``structlog`` events from validation components into the same sinks.

Behavior
- Emitting threads only enqueue. A ``QueueListener`` thread formats and writes.
- A full queue drops the record and counts it instead of blocking a validation task.
- Correlation keys (``run_id``, ``environment``, ``object``) come from a contextvar that is
  read on the emitting thread, so values bound inside a task stay with that task's records.
- Secret-looking keys and ``token=...``/``Bearer ...`` fragments are masked unless
  redaction is switched off.
"""

from __future__ import annotations

import atexit
import contextvars
import json
import logging
import logging.handlers
import queue
import re
import sys
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

LOG_FILENAME: Final[str] = "validator.jsonl"
ROOT_LOGGER_NAME: Final[str] = "manifest_validator"
MASK: Final[str] = "***REDACTED***"

CORRELATION_KEYS: Final[tuple[str, ...]] = ("run_id", "environment", "object")

_SECRET_KEY_FRAGMENTS: Final[frozenset[str]] = frozenset(
    {
        "secret",
        "token",
        "password",
        "passphrase",
        "apikey",
        "api_key",
        "authorization",
        "credential",
        "cookie",
        "private_key",
    }
)
_INLINE_SECRET: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|client_secret|authorization)(\s*[:=]\s*)[^\s,;]+"
)
_BEARER: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "correlation"}

_correlation: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "manifest_validator_correlation", default={}
)

_active_lock = threading.Lock()
_active: RunLogHandle | None = None
_atexit_hooked = False


@dataclass(frozen=True, slots=True)
class RunLogSettings:
    """Where and how one validation run logs."""

    run_id: str
    log_dir: Path | str = Path("logs")
    level: int | str = "INFO"
    log_to_stderr: bool = False
    redact: bool = True
    queue_size: int = 4096
    logger_name: str = ROOT_LOGGER_NAME

    def level_number(self) -> int:
        if isinstance(self.level, bool):
            raise ValueError("level must be a level name or number")
        if isinstance(self.level, int):
            return self.level
        number = logging.getLevelName(self.level.strip().upper())
        if not isinstance(number, int):
            raise ValueError(f"unsupported logging level {self.level!r}")
        return number

    def checked(self) -> RunLogSettings:
        if not self.run_id.strip():
            raise ValueError("run_id must not be empty")
        if not self.logger_name.strip():
            raise ValueError("logger_name must not be empty")
        if isinstance(self.queue_size, bool) or self.queue_size <= 0:
            raise ValueError("queue_size must be a positive integer")
        self.level_number()
        return self


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """Enqueue without blocking; count what does not fit."""

    def __init__(self, records: queue.Queue[logging.LogRecord]) -> None:
        super().__init__(records)
        self._lock = threading.Lock()
        self.dropped = 0

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record.correlation = dict(_correlation.get())
        prepared: logging.LogRecord = super().prepare(record)
        return prepared

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._lock:
                self.dropped += 1


class _JsonLinesFormatter(logging.Formatter):
    def __init__(self, run_id: str, redactor: LogRedactor) -> None:
        super().__init__()
        self._run_id = run_id
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, JSONValue] = {
            "timestamp": _utc_stamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": _as_text(self._redactor(record.getMessage())),
            "run_id": self._run_id,
        }
        bound = getattr(record, "correlation", {})
        line.update({key: value for key, value in bound.items() if key in CORRELATION_KEYS})

        extras = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extras:
            line["fields"] = self._redactor(extras)
        if record.exc_info:
            line["exception"] = _as_text(self._redactor(self.formatException(record.exc_info)))
        return json.dumps(line, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(slots=True, eq=False)
class RunLogHandle:
    """Live logging pipeline for one run. ``close`` drains and detaches it."""

    run_id: str
    log_path: Path
    logger: logging.Logger
    _records: queue.Queue[logging.LogRecord]
    _enqueuer: _DroppingQueueHandler
    _listener: logging.handlers.QueueListener
    _sinks: tuple[logging.Handler, ...]
    _close_lock: threading.Lock = field(default_factory=threading.Lock)
    closed: bool = False

    @property
    def dropped_records(self) -> int:
        return self._enqueuer.dropped

    def close(self, *, timeout_seconds: float = 2.0) -> None:
        with self._close_lock:
            if self.closed:
                return
            deadline = time.monotonic() + max(timeout_seconds, 0.0)
            while self._records.unfinished_tasks and time.monotonic() < deadline:
                time.sleep(0.01)
            self._listener.stop()
            self.logger.removeHandler(self._enqueuer)
            self._enqueuer.close()
            for sink in self._sinks:
                sink.flush()
                sink.close()
            self.closed = True


def start_run_logging(settings: RunLogSettings) -> RunLogHandle:
    """Open the per-run JSON-lines file and attach the queue pipeline to the logger."""
    settings = settings.checked()
    shutdown_logging()
    level = settings.level_number()
    run_id = settings.run_id.strip()

    run_dir = Path(settings.log_dir) / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    log_path = run_dir / LOG_FILENAME

    formatter = _JsonLinesFormatter(run_id, redact if settings.redact else _unchanged)
    sinks: list[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if settings.log_to_stderr:
        sinks.append(logging.StreamHandler(sys.stderr))
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(settings.logger_name.strip())
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    records: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=settings.queue_size)
    enqueuer = _DroppingQueueHandler(records)
    listener = logging.handlers.QueueListener(records, *sinks, respect_handler_level=True)
    listener.start()
    logger.addHandler(enqueuer)

    handle = RunLogHandle(
        run_id=run_id,
        log_path=log_path,
        logger=logger,
        _records=records,
        _enqueuer=enqueuer,
        _listener=listener,
        _sinks=tuple(sinks),
    )
    global _active, _atexit_hooked
    with _active_lock:
        _active = handle
        if not _atexit_hooked:
            atexit.register(shutdown_logging)
            _atexit_hooked = True
    return handle


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    log_dir: Path | str | None = None,
    logger_name: str = ROOT_LOGGER_NAME,
) -> RunLogHandle:
    """Start run logging from an ``[observability]`` section and hook up structlog.

    ``log_dir`` overrides the section's ``log_dir``. Keys left out of the section fall back
    to the ``RunLogSettings`` defaults.
    """
    section = dict(observability_config or {})
    handle = start_run_logging(
        RunLogSettings(
            run_id=run_id,
            log_dir=log_dir if log_dir is not None else str(section.get("log_dir", "logs")),
            level=_level_from(section.get("log_level", "INFO")),
            log_to_stderr=bool(section.get("log_to_stderr", False)),
            redact=bool(section.get("redact_secrets", True)),
            logger_name=logger_name,
        )
    )
    configure_structlog()
    return handle


def configure_structlog() -> None:
    """Send structlog events to stdlib loggers; event keys end up under ``fields``."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def shutdown_logging(handle: RunLogHandle | None = None) -> None:
    """Close ``handle`` (default: the active one). Safe to call repeatedly."""
    global _active
    with _active_lock:
        target = handle if handle is not None else _active
        if target is not None and _active is target:
            _active = None
    if target is not None:
        target.close()


def active_run_logging() -> RunLogHandle | None:
    with _active_lock:
        return _active


def current_correlation() -> dict[str, str]:
    return dict(_correlation.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation keys for records emitted in this context; ``None`` unbinds a key."""
    bound = dict(_correlation.get())
    for key, value in fields.items():
        if value is None:
            bound.pop(key, None)
        elif not value.strip():
            raise ValueError(f"correlation value for {key!r} must not be empty")
        else:
            bound[key] = value.strip()
    token = _correlation.set(bound)
    try:
        yield
    finally:
        _correlation.reset(token)


def redact(value: JSONValue) -> JSONValue:
    """Mask values under secret-looking keys and inline secrets in strings."""
    if isinstance(value, str):
        return _BEARER.sub(f"Bearer {MASK}", _INLINE_SECRET.sub(rf"\1\2{MASK}", value))
    if isinstance(value, list):
        return [redact(item) for item in value]
    if isinstance(value, dict):
        return {
            key: MASK if _looks_secret(key) else redact(item) for key, item in value.items()
        }
    return value


def _looks_secret(key: str) -> bool:
    lowered = key.lower()
    return any(fragment in lowered for fragment in _SECRET_KEY_FRAGMENTS)


def _unchanged(value: JSONValue) -> JSONValue:
    return value


def _level_from(raw: object) -> int | str:
    return raw if isinstance(raw, (int, str)) and not isinstance(raw, bool) else "INFO"


def _utc_stamp(epoch_seconds: float) -> str:
    stamp = datetime.fromtimestamp(epoch_seconds, tz=UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _as_text(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def _jsonable(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)


__all__ = [
    "CORRELATION_KEYS",
    "JSONValue",
    "LogRedactor",
    "RunLogHandle",
    "RunLogSettings",
    "active_run_logging",
    "configure_structlog",
    "correlation_scope",
    "current_correlation",
    "redact",
    "setup_logging",
    "shutdown_logging",
    "start_run_logging",
]
