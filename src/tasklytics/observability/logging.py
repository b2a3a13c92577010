"""Structured JSON logging for Tasklytics.

Every line carries the emitting component and, while a flow runs, the
``flow_id`` and ``execution_id`` bound with ``log_context`` so that action
output (``log_message``, notifications, relay failures) can be traced back
to the execution record it belongs to.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

SERVICE_NAME = "tasklytics"

_log_context: ContextVar[dict[str, Any]] = ContextVar(
    "tasklytics_log_context", default={}
)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Binds fields to every record logged inside the block.

    Nested blocks extend the outer context; inner values win.
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """Copies the active ``log_context`` fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Renders records as one JSON object per line.

    The envelope is ``timestamp, level, service, component, message``;
    context fields and ``extra={"extra_fields": {...}}`` are merged on top.
    """

    def __init__(self, *args, service: str = SERVICE_NAME, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        dummy_record = logging.LogRecord(
            "name", logging.INFO, "path", 1, "msg", None, None
        )
        self._reserved_attrs = set(dummy_record.__dict__.keys())
        self._reserved_attrs.update({"message", "asctime", "stack_info"})

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "component": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = None
        for key, value in record.__dict__.items():
            if key in self._reserved_attrs:
                continue
            if key == "extra_fields" and isinstance(value, dict):
                extra_fields = value
            else:
                log_entry[key] = value
        # Explicit per-call fields override bound context
        if extra_fields:
            log_entry.update(extra_fields)

        return json.dumps(log_entry, default=str)


def setup_logging(level: Optional[str] = None, stream=None):
    """Initializes root logging with a single JSON handler.

    Args:
        level: Optional log level override. Defaults to LOG_LEVEL env var or INFO.
        stream: Output stream for the handler. Defaults to stdout.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger()
    logger.setLevel(log_level)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ContextFilter())

    for h in logger.handlers[:]:
        logger.removeHandler(h)

    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
