"""
Structured JSON Logging Module.

Every component logs through a ``StructuredLogger`` that lives under the
``qcheck`` logger namespace (``get_logger("services")`` writes to
``qcheck.services``).  Handlers are installed once, on the namespace
root, so all components share a single stdout stream and a single
rotating log file.

One JSON object per line::

    {"timestamp": "...", "level": "INFO", "logger_name": "qcheck.services",
     "message": "AUDIT CREATE FMEARecord/...", "extra": {"audit": {...}}}
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

LOGGER_NAMESPACE = "qcheck"

_setup_lock = threading.Lock()


def _jsonable(value: object) -> object:
    """Keep JSON scalars and containers as they are; stringify the rest."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return str(value)


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON objects.

    Keys: ``timestamp`` (UTC ISO-8601), ``level``, ``logger_name``,
    ``message``, plus ``extra`` for caller-supplied fields and
    ``exception`` when ``exc_info`` was given.
    """

    # LogRecord's own attributes; anything else on a record came from ``extra``.
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


def _qualify(name: str) -> str:
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return name
    return f"{LOGGER_NAMESPACE}.{name}"


def _configure_namespace(
    level: int,
    stream: Optional[TextIO],
    log_file: Optional[str],
    max_bytes: Optional[int],
    backup_count: Optional[int],
) -> None:
    """Attach the stdout and rotating-file handlers to the namespace root, once."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _setup_lock:
        if any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
            return

        # Lazy import to avoid circular dependency at module level
        from qcheck.config import get_config
        cfg = get_config()

        formatter = JSONFormatter()
        root.setLevel(level)
        root.propagate = False

        stream_handler = logging.StreamHandler(stream or sys.stdout)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

        resolved_log_file = log_file or cfg.LOG_FILE
        try:
            log_path = Path(resolved_log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backupCount=backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            root.warning(
                "Could not open log file '%s': %s. Logging to the console only.",
                resolved_log_file,
                exc,
            )
            return

        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


class StructuredLogger:
    """Injectable logger.

    Pass an instance wherever a logger is needed; the underlying
    ``logging.Logger`` is exposed as ``.logger``.  Handler options
    (``stream``, ``log_file``, sizes) only take effect for the first
    instance created in the process, which sets up the namespace.

    Usage::

        log = StructuredLogger(name="history")
        log.info("Record created", extra={"record_id": "abc"})
    """

    def __init__(
        self,
        name: str = LOGGER_NAMESPACE,
        level: int = logging.INFO,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        _configure_namespace(level, stream, log_file, max_bytes, backup_count)
        self._logger: logging.Logger = logging.getLogger(_qualify(name))

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = LOGGER_NAMESPACE) -> StructuredLogger:
    """Return a ``StructuredLogger`` for ``qcheck.<name>``."""
    return StructuredLogger(name=name)
